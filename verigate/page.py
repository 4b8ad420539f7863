"""Verification page renderer.

Builds the HTML document served by ``GET /go``. The page:

  - loads the vendor script asynchronously; the script URL carries a random
    cache-busting number first, then ``instance``, ``source``, ``campaign``
    and the callback name (empty values omitted), each passed through
    ``encodeURIComponent`` in the browser;
  - defines the callback the vendor script calls when it is done, which POSTs
    the vendor token to ``/verify`` with the page's own query string and then
    navigates to the URL the server returns.

Every server-side value lands in the page as a JSON string literal, so the
instance id appears in the document as configured. ``<``, ``>``, ``&`` and the
JS line separators are escaped in those literals so no visitor-supplied value
can close the ``<script>`` element or break out of the string.
"""

from __future__ import annotations

import json
import secrets
from string import Template
from typing import Optional

from verigate.constants import CACHE_BUSTER_MAX, VENDOR_CALLBACK_NAME, VENDOR_SCRIPT_URL

_JS_STRING_ESCAPES = {
    ord("<"): "\\u003C",
    ord(">"): "\\u003E",
    ord("&"): "\\u0026",
    0x2028: "\\u2028",
    0x2029: "\\u2029",
}

_PAGE_TEMPLATE = Template("""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <meta name="robots" content="noindex, nofollow">
    <title>Verification System</title>
    <style>
        body {
            margin: 0;
            font-family: system-ui, -apple-system, sans-serif;
            background-color: #f5f5f5;
            display: flex;
            justify-content: center;
            align-items: center;
            min-height: 100vh;
        }
        .container {
            text-align: center;
            padding: 2rem;
            background-color: white;
            border-radius: 8px;
            box-shadow: 0 2px 4px rgba(0, 0, 0, 0.1);
            max-width: 400px;
            width: 90%;
        }
        .spinner {
            width: 40px;
            height: 40px;
            border: 4px solid #f3f3f3;
            border-top: 4px solid #3498db;
            border-radius: 50%;
            animation: spin 1s linear infinite;
            margin: 20px auto;
        }
        @keyframes spin {
            0% { transform: rotate(0deg); }
            100% { transform: rotate(360deg); }
        }
        .error {
            color: #dc3545;
            display: none;
            margin-top: 1rem;
        }
    </style>
</head>
<body>
    <div class="container">
        <h1>Processing your request...</h1>
        <div class="spinner"></div>
        <p>Please wait while we verify your session.</p>
        <p class="error" id="errorMessage">An error occurred. Please try again.</p>
    </div>

    <script>
        (function() {
            var showError = function() {
                document.getElementById('errorMessage').style.display = 'block';
                document.querySelector('.spinner').style.display = 'none';
            };

            window[$callback_name] = function() {
                if (!window.Anura) {
                    return;
                }
                fetch('/verify' + window.location.search, {
                    method: 'POST',
                    headers: {'Content-Type': 'application/json'},
                    body: JSON.stringify({responseId: window.Anura.getAnura().getId()})
                }).then(function(response) {
                    if (!response.ok) {
                        throw new Error('Verification failed');
                    }
                    return response.json();
                }).then(function(data) {
                    if (!data.url) {
                        throw new Error('No destination');
                    }
                    window.location.href = data.url;
                }).catch(function(error) {
                    console.error('Error:', error);
                    showError();
                });
            };

            var request = {
                instance: $instance,
                source: $source,
                campaign: $campaign,
                callback: $callback_name
            };
            var params = [$cache_buster];
            for (var key in request) {
                if (request[key]) {
                    params.push(key + '=' + encodeURIComponent(request[key]));
                }
            }

            var anura = document.createElement('script');
            anura.type = 'text/javascript';
            anura.async = true;
            anura.src = $script_base + '?' + params.join('&');
            var firstScript = document.getElementsByTagName('script')[0];
            firstScript.parentNode.insertBefore(anura, firstScript);
        })();
    </script>
</body>
</html>
""")


def js_string(value: str) -> str:
    """Encode *value* as a JS string literal safe inside a ``<script>`` block."""
    return json.dumps(value, ensure_ascii=False).translate(_JS_STRING_ESCAPES)


def new_cache_buster() -> int:
    """Random integer in [1, 10^12]."""
    return secrets.randbelow(CACHE_BUSTER_MAX) + 1


def render_verification_page(
    instance_id: str,
    source: str = "",
    campaign: str = "",
    *,
    cache_buster: Optional[int] = None,
) -> str:
    """Render the verification page HTML.

    Callers must validate the visitor's redirect/denied URLs first; the page
    itself never sees them (the browser re-sends its own query string).
    """
    if cache_buster is None:
        cache_buster = new_cache_buster()
    return _PAGE_TEMPLATE.substitute(
        instance=js_string(instance_id),
        source=js_string(source),
        campaign=js_string(campaign),
        callback_name=js_string(VENDOR_CALLBACK_NAME),
        cache_buster=int(cache_buster),
        script_base=js_string(VENDOR_SCRIPT_URL),
    )

"""Landing page and browser reload script."""

from string import Template

INDEX_HTML = Template("""<!DOCTYPE html>
<html>
<head><title>http-watcher</title></head>
<body>
<h2>http-watcher</h2>
<p>Insert the following snippet into your webpage:
<code>
&lt;script src="$scheme://$host/js"&gt;&lt;/script&gt;
</code>
</p>
</body>
</html>
""")

RELOAD_JS = Template("""(function () {
    var added = false;
    function add_js() {
        if (added) { return; }

        if (window.WebSocket) {
            var sock = new WebSocket("$ws_scheme://$host/ws");

            sock.onopen = function () {
                console.log("http-watcher reload connected");
            };
            sock.onclose = function () {
                console.log("http-watcher reload disconnected");
            };
            sock.onmessage = function (e) {
                setTimeout(function () {
                    location.reload();
                }, parseFloat(e.data));
            };
        } else {
            console.log("http-watcher failed, websockets not supported");
        }
        added = true;
    }

    setTimeout(function () {
        setTimeout(add_js, 600);
        window.onload = add_js;
    }, 600);
})();
""")


def render_index(host: str, scheme: str = "http") -> str:
    """Render the landing page showing the snippet to embed."""
    return INDEX_HTML.substitute(host=host, scheme=scheme)


def render_reload_js(host: str, secure: bool = False) -> str:
    """Render the reload script connecting back to ``host``."""
    return RELOAD_JS.substitute(host=host, ws_scheme="wss" if secure else "ws")

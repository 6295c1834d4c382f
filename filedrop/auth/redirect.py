from urllib.parse import urlsplit

SIGNOUT_PATH = "/api/auth/signout"


def _same_origin(url: str, base_url: str) -> bool:
    target = urlsplit(url)
    base = urlsplit(base_url)
    if (target.scheme, target.netloc) != (base.scheme, base.netloc):
        return False
    base_path = base.path.rstrip("/")
    return not base_path or target.path == base_path or target.path.startswith(base_path + "/")


def resolve_redirect(url: str, base_url: str) -> str:
    """Pick where to send the browser after an auth transition.

    Sign-out always lands on the bare base URL. Other targets are honoured
    only when they stay on the site's own origin.
    """
    base_url = base_url.rstrip("/")
    if not url:
        return base_url

    # "/dashboard" but not "//evil.example"
    if url.startswith("/") and not url.startswith("//"):
        url = base_url + url

    if url.startswith(base_url + SIGNOUT_PATH):
        return base_url

    return url if _same_origin(url, base_url) else base_url

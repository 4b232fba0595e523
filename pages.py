import json, logging, re
from bs4 import BeautifulSoup as bs
from structs import Page
from utils import img_attr

log = logging.getLogger(__name__)

CHAPTER_IMAGE_SELECTOR = "div#chapter_body .main-reading-area img.size-full"
MANIFEST_IMAGE_SELECTOR = "img.size-full"
PREFERRED_SERVER = "cdn"

_CHAPTER_IMAGES_RE = re.compile(r"chapterImages\s*=(?!=)\s*")
_MANIFEST_END_RE = re.compile(r"\s*\|\|")

def extract_manifest(text: str) -> dict[str, list[str]] | None:
    """
    Find the `chapterImages = {...} ||` assignment in the raw chapter page.

    Returns None when the page has no such script. Raises `json.JSONDecodeError`
    when it has one but the JSON is broken, and `ValueError` when it is not
    an object of image servers.
    """
    m = _CHAPTER_IMAGES_RE.search(text)
    if not m: return None

    manifest, end = json.JSONDecoder().raw_decode(text, m.end())
    # only `chapterImages = {...} || ...` is the image manifest
    if not _MANIFEST_END_RE.match(text, end): return None
    if not isinstance(manifest, dict):
        raise ValueError(f"chapterImages is not an object: {type(manifest).__name__}")
    if not manifest:
        raise ValueError("chapterImages has no image server")
    return manifest

def select_server(manifest: dict[str, list[str]]) -> str:
    if PREFERRED_SERVER in manifest:
        return PREFERRED_SERVER
    server = next(iter(manifest))
    log.info("No '%s' image server, falling back to '%s'", PREFERRED_SERVER, server)
    return server

def decode_fragments(fragments: list[str]) -> str:
    """Join the JSON-encoded html fragments of one server and decode them back to html"""
    encoded = '"' + "".join(json.dumps(fragment)[1:-1] for fragment in fragments) + '"'
    html = json.loads(encoded)
    # some chapters carry the fragments encoded twice
    while len(html) >= 2 and html.startswith('"') and html.endswith('"'):
        html = json.loads(html)
    return html

def parse_virtual_document(html: str) -> bs:
    return bs(html, "html.parser")

def resolve_pages(text: str, base_url: str = "") -> list[Page]:
    soup = bs(text, "html.parser")
    images = soup.select(CHAPTER_IMAGE_SELECTOR)

    manifest = extract_manifest(text)
    if manifest is not None:
        server = select_server(manifest)
        log.debug("Using image server '%s' of %s", server, list(manifest))
        virtual = parse_virtual_document(decode_fragments(manifest[server]))
        # the manifest holds nothing but <img> tags, some without the size-full class
        images = virtual.select(MANIFEST_IMAGE_SELECTOR) or virtual.select("img")

    urls = [url for url in (img_attr(img, base_url) for img in images) if url]
    return [Page(i, url) for i, url in enumerate(urls)]

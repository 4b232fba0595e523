import httpx, pytest
from client import KomikCastClient

HOST = "https://komikcast.me"

LISTING_HTML = """
<html><body>
<div class="list-update">
  <div class="list-update_item">
    <a href="https://komikcast.me/komik/solo-leveling/" title="Solo Leveling">
      <div class="list-update_item-image"><img data-src="/wp-content/uploads/solo.jpg" src="/lazy.gif"></div>
      <div class="list-update_item-info"><h3 class="title">Solo Leveling <span class="type">Manhwa</span></h3></div>
    </a>
  </div>
  <div class="list-update_item">
    <a href="/komik/one-piece/">
      <img src="https://cdn.komikcast.me/one-piece.jpg">
      <h3 class="title"><span class="hot">HOT</span> One Piece</h3>
    </a>
  </div>
</div>
<div class="pagination"><a class="next page-numbers" href="/daftar-komik/page/2/">Next</a></div>
</body></html>
"""

LAST_LISTING_HTML = """
<html><body>
<div class="list-update_item"><a href="/komik/last/"><h3 class="title">Last One</h3></a></div>
</body></html>
"""

DETAILS_HTML = """
<html><body>
<div class="komik_info">
  <div class="komik_info-content">
    <div class="komik_info-content-thumbnail"><img src="/wp-content/uploads/solo.jpg"></div>
    <h1 class="komik_info-content-body-title">Solo Leveling <span class="badge">Bahasa Indonesia</span></h1>
    <span class="komik_info-content-native">나 혼자만 레벨업</span>
    <div class="komik_info-content-genre">
      <a href="/genres/action/">Action</a>
      <a href="/genres/fantasy/">Fantasy</a>
    </div>
    <div class="komik_info-content-meta">
      <span><b>Status:</b> Ongoing</span>
      <span><b>Author:</b> Chugong</span>
      <span><b>Type:</b> Manhwa</span>
    </div>
  </div>
  <div class="komik_info-description-sinopsis"><p>Hunters fight monsters.</p><p>One of them levels up.</p></div>
  <div class="komik_info-chapters">
    <ul>
      <li><a class="chapter-link-item" href="/chapter/solo-leveling-chapter-2/">Chapter <span>2</span></a>
          <div class="chapter-link-time">5 jam yang lalu</div></li>
      <li><a class="chapter-link-item" href="/chapter/solo-leveling-chapter-1/">Chapter 1</a>
          <div class="chapter-link-time">Maret 04, 2018</div></li>
      <li><a class="chapter-link-item" href="/chapter/solo-leveling-prologue/">Prologue</a></li>
    </ul>
  </div>
</div>
</body></html>
"""

STRUCTURAL_CHAPTER_HTML = """
<html><body>
<img class="size-full" src="/logo.png">
<div id="chapter_body">
  <div class="main-reading-area">
    <img class="size-full" src="https://cdn.komikcast.me/1.jpg">
    <img class="size-full" data-src="/uploads/2.jpg" src="/lazy.gif">
    <img class="ads" src="https://ads.example/banner.gif">
  </div>
</div>
</body></html>
"""

MANIFEST_CHAPTER_HTML = r"""
<html><body>
<div id="chapter_body">
  <div class="main-reading-area">
    <img class="size-full" src="https://cdn.komikcast.me/structural.jpg">
  </div>
</div>
<script>var chapterImages = {"s2":["<img class=\"size-full\" src=\"https://s2.example/1.jpg\">"],"cdn":["<img class=\"size-full\" src=\"https://cdn.example/1.jpg\">","<img class=\"size-full\" src=\"https://cdn.example/2.jpg\">"]} || [];</script>
</body></html>
"""

class Recorder:
    """httpx.MockTransport handler serving fixed responses and keeping every request"""

    def __init__(self, routes: dict[str, httpx.Response | str] | None = None):
        self.routes = routes or dict()
        self.requests: list[httpx.Request] = list()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.routes.get(request.url.path)
        if response is None:
            return httpx.Response(404, text="not found")
        if isinstance(response, str):
            return httpx.Response(200, text=response, headers={"Content-Type": "text/html"})
        return response

@pytest.fixture
def recorder() -> Recorder:
    return Recorder()

@pytest.fixture
def client(recorder: Recorder) -> KomikCastClient:
    c = KomikCastClient(rate_limit=0, transport=httpx.MockTransport(recorder))
    yield c
    c.close()

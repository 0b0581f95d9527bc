"""Shared test fixtures for the kitsuneid test suite.

Upstream pages are trimmed copies of the real markup: only the elements the
normalizers read, plus a little noise around them.
"""

from __future__ import annotations

from typing import Any

import pytest

BASE_URL = "https://otakudesu.cloud"
JIKAN_URL = "https://api.jikan.moe/v4"

ONGOING_HTML = f"""
<html><body>
<div class="venz"><ul>
  <li><div class="detpost">
    <div class="epz"><i class="fa fa-play"></i> Episode 7</div>
    <div class="epztipe"><i class="fa fa-calendar"></i> Senin</div>
    <div class="newnime">12 Okt</div>
    <div class="thumb"><a href="{BASE_URL}/anime/jjk-s2-sub-indo/">
      <div class="thumbz">
        <img src="https://cdn.example/jjk.jpg" alt="Jujutsu Kaisen Season 2"/>
        <h2 class="jdlflm">Jujutsu Kaisen Season 2</h2>
      </div>
    </a></div>
  </div></li>
  <li><div class="detpost">
    <div class="epz">Episode 3</div>
    <div class="epztipe">Jumat</div>
    <div class="thumb"><a href="{BASE_URL}/anime/sousou-frieren-sub-indo/">
      <div class="thumbz"><img data-src="https://cdn.example/frieren.jpg"/>
      <h2 class="jdlflm">Sousou no Frieren</h2></div>
    </a></div>
  </div></li>
  <li><div class="detpost">
    <div class="epz">Episode 8</div>
    <div class="thumb"><a href="{BASE_URL}/anime/jjk-s2-sub-indo/">
      <h2 class="jdlflm">Jujutsu Kaisen Season 2 (repost)</h2>
    </a></div>
  </div></li>
  <li><div class="detpost"><div class="epz">Episode 1</div></div></li>
</ul></div>
</body></html>
"""

COMPLETE_HTML = f"""
<html><body>
<div class="venz"><ul>
  <li><div class="detpost">
    <div class="epz">12 Episode</div>
    <div class="epztipe"><i class="fa fa-star"></i> 8.12</div>
    <div class="thumb"><a href="{BASE_URL}/anime/bocchi-the-rock-sub-indo/">
      <img src="https://cdn.example/bocchi.jpg"/><h2 class="jdlflm">Bocchi the Rock!</h2>
    </a></div>
  </div></li>
</ul></div>
</body></html>
"""

SEARCH_HTML = f"""
<html><body>
<ul class="chivsrc">
  <li>
    <img src="https://cdn.example/aot1.jpg"/>
    <h2><a href="{BASE_URL}/anime/aot-1/">Attack on Titan</a></h2>
    <div class="set"><b>Genres</b> : Action, Drama</div>
    <div class="set"><b>Status</b> : Completed</div>
    <div class="set"><b>Rating</b> : 8.5</div>
  </li>
  <li>
    <img src="https://cdn.example/aot2.jpg"/>
    <h2><a href="{BASE_URL}/anime/aot-2/">Attack on Titan Season 2 Subtitle Indonesia</a></h2>
    <div class="set"><b>Status</b> : Completed</div>
    <div class="set"><b>Rating</b> : 8,4</div>
  </li>
</ul>
</body></html>
"""

EMPTY_SEARCH_HTML = '<html><body><ul class="chivsrc"></ul></body></html>'

SCHEDULE_HTML = f"""
<html><body>
<div class="kgjdwl321">
  <div class="kglist321">
    <h2>Senin</h2>
    <ul>
      <li><a href="{BASE_URL}/anime/jjk-s2-sub-indo/">Jujutsu Kaisen Season 2</a></li>
      <li><a href="{BASE_URL}/anime/jjk-s2-sub-indo/">Jujutsu Kaisen Season 2</a></li>
    </ul>
  </div>
  <div class="kglist321">
    <h2>Jumat</h2>
    <ul><li><a href="{BASE_URL}/anime/sousou-frieren-sub-indo/">Sousou no Frieren</a></li></ul>
  </div>
  <div class="kglist321"><ul><li><a href="{BASE_URL}/anime/x/">No day heading</a></li></ul></div>
</div>
</body></html>
"""

DETAIL_HTML = f"""
<html><head>
<title>Jujutsu Kaisen Season 2 | Otakudesu</title>
<meta property="og:url" content="{BASE_URL}/anime/jjk-s2-sub-indo/"/>
<meta property="og:image" content="https://cdn.example/og.jpg"/>
</head><body>
<div class="fotoanime">
  <img src="https://cdn.example/jjk.jpg"/>
  <div class="infozingle">
    <p><span><b>Judul</b>: Jujutsu Kaisen Season 2</span></p>
    <p><span><b>Skor</b>: 8,78</span></p>
    <p><span><b>Tipe</b>: TV</span></p>
    <p><span><b>Status</b>: Completed</span></p>
    <p><span><b>Total Episode</b>: 23</span></p>
    <p><span><b>Durasi</b>: 23 Menit</span></p>
    <p><span><b>Tanggal Rilis</b>: Jul 06, 2023</span></p>
    <p><span><b>Studio</b>: MAPPA</span></p>
    <p><span><b>Produser</b>: </span></p>
    <p><span><b>Genre</b>:
      <a href="{BASE_URL}/genres/action/" rel="tag">Action</a>,
      <a href="{BASE_URL}/genres/fantasy/" rel="tag">Fantasy</a>,
      <a href="{BASE_URL}/genres/action/" rel="tag">Action</a>
    </span></p>
  </div>
</div>
<div class="sinopc"><p>Satoru Gojo dan Suguru Geto di masa SMA.</p><p>Arc Shibuya.</p></div>
<div class="episodelist">
  <div class="smokelister"><span class="monktit">Jujutsu Kaisen Season 2 Batch</span></div>
  <ul><li><span><a href="{BASE_URL}/batch/jjk-s2-batch/">Batch 1-23</a></span></li></ul>
</div>
<div class="episodelist">
  <div class="smokelister"><span class="monktit">Jujutsu Kaisen Season 2 Episode List</span></div>
  <ul>
    <li><span><a href="{BASE_URL}/episode/jjk-s2-episode-3-sub-indo/">
      Jujutsu Kaisen Season 2 Episode 3 Subtitle Indonesia</a></span></li>
    <li><span><a href="{BASE_URL}/episode/jjk-s2-episode-2-sub-indo/">
      Jujutsu Kaisen Season 2 Episode 2 Subtitle Indonesia</a></span></li>
    <li><span><a href="{BASE_URL}/episode/jjk-s2-episode-1-sub-indo/">
      Jujutsu Kaisen Season 2 Episode 1 Subtitle Indonesia</a></span></li>
  </ul>
</div>
</body></html>
"""

AOT2_DETAIL_HTML = f"""
<html><body>
<div class="jdlrx"><h1>Attack on Titan Season 2</h1></div>
<div class="infozingle">
  <p><span><b>Status</b>: Completed</span></p>
</div>
<div class="episodelist">
  <div class="smokelister"><span class="monktit">Attack on Titan Season 2 Episode List</span></div>
  <ul><li><a href="{BASE_URL}/episode/aot-2-episode-1/">Attack on Titan Season 2 Episode 1</a></li></ul>
</div>
</body></html>
"""

CHALLENGE_HTML = (
    "<html><head><title>Just a moment...</title></head>"
    "<body><h1>Checking your browser before accessing.</h1></body></html>"
)

EPISODE_HTML = f"""
<html><head><title>Jujutsu Kaisen Season 2 Episode 2 | Otakudesu</title></head><body>
<div class="venutama">
  <h1 class="posttl">Jujutsu Kaisen Season 2 Episode 2 Subtitle Indonesia</h1>
  <div class="responsive-embed-stream">
    <div id="pembed"><iframe src="https://desustream.me/embed/default"></iframe></div>
  </div>
  <div class="flir">
    <a href="{BASE_URL}/episode/jjk-s2-episode-1-sub-indo/" title="Episode Sebelumnya">Prev</a>
    <a href="{BASE_URL}/anime/jjk-s2-sub-indo/">See All Episodes</a>
    <a href="{BASE_URL}/episode/jjk-s2-episode-3-sub-indo/" title="Episode Selanjutnya">Next</a>
  </div>
  <div class="mirrorstream">
    <ul class="m360p">
      <li><a href="#" data-content="TOKEN360A">ondesu</a></li>
    </ul>
    <ul class="m720p">
      <li><a href="#" data-content="TOKEN720A">desustream</a></li>
      <li><a href="#" data-content="TOKEN720B">mega</a></li>
      <li><a href="#">no token</a></li>
    </ul>
  </div>
  <div class="download"><ul>
    <li><strong>Mp4 360p</strong>
      <a href="https://dl.example/1">ODFiles</a>
      <a href="https://dl.example/2">Pdrain</a>
      <a href="https://dl.example/3">Mega</a>
      <a href="https://dl.example/4">Acefile</a>
      <i>52 MB</i></li>
    <li><strong>Mp4 720p</strong>
      <a href="https://dl.example/5">Mega</a>
      <a href="/relative/6">Broken</a></li>
  </ul></div>
</div>
<script>
var loadA = {{ action: "act_nonce_1" }};
var loadB = {{ id: id, i: i, q: q, nonce: window.__x__nonce, action: "act_stream_1" }};
</script>
</body></html>
"""


def jikan_anime(
    mal_id: int,
    title: str,
    *,
    title_english: str | None = None,
    status: str = "Currently Airing",
    day: str | None = "Mondays",
    score: float | None = 8.1,
    episodes: int | None = 12,
) -> dict[str, Any]:
    """A Jikan v4 anime record with the fields the normalizer reads."""
    return {
        "mal_id": mal_id,
        "url": f"https://myanimelist.net/anime/{mal_id}",
        "images": {
            "jpg": {"image_url": f"https://cdn.myanimelist.net/{mal_id}.jpg"},
            "webp": {"large_image_url": f"https://cdn.myanimelist.net/{mal_id}l.webp"},
        },
        "title": title,
        "title_english": title_english,
        "titles": [{"type": "Default", "title": title}],
        "type": "TV",
        "episodes": episodes,
        "status": status,
        "score": score,
        "synopsis": f"Synopsis of {title}.",
        "duration": "24 min per ep",
        "aired": {"string": "Apr 1, 2017 to Jun 17, 2017"},
        "broadcast": {"day": day, "string": None},
        "genres": [{"name": "Action"}, {"name": "Drama"}, {"name": "Action"}],
        "studios": [{"name": "Wit Studio"}],
        "rank": 100,
    }


def jikan_page(*records: dict[str, Any]) -> dict[str, Any]:
    return {"data": list(records), "pagination": {"has_next_page": False}}


@pytest.fixture()
def ongoing_html() -> str:
    return ONGOING_HTML


@pytest.fixture()
def complete_html() -> str:
    return COMPLETE_HTML


@pytest.fixture()
def search_html() -> str:
    return SEARCH_HTML


@pytest.fixture()
def empty_search_html() -> str:
    return EMPTY_SEARCH_HTML


@pytest.fixture()
def schedule_html() -> str:
    return SCHEDULE_HTML


@pytest.fixture()
def detail_html() -> str:
    return DETAIL_HTML


@pytest.fixture()
def episode_html() -> str:
    return EPISODE_HTML


@pytest.fixture()
def aot2_detail_html() -> str:
    return AOT2_DETAIL_HTML


@pytest.fixture()
def challenge_html() -> str:
    return CHALLENGE_HTML


@pytest.fixture()
def make_jikan_anime():
    return jikan_anime


@pytest.fixture()
def make_jikan_page():
    return jikan_page

"""Request and response hooks: random user agents, Referer headers, URL limits."""

from __future__ import annotations

import random
from collections.abc import Callable

from .request import Request
from .response import Response

_REFERER_KEY = "_referer"

_FIREFOX_VERSIONS = tuple(float(major) for major in range(102, 114))

# Stable desktop releases grouped by "major.minor.build", with their patch numbers.
_CHROME_RELEASES = (
    ("102.0.5005", (115,)),
    ("103.0.5060", (53, 66, 114, 134)),
    ("104.0.5112", (79, 80, 81, 101, 102)),
    ("105.0.5195", (52, 53, 54, 102, 125, 126, 127)),
    ("106.0.5249", (61, 62, 91, 103, 119)),
    ("107.0.5304", (62, 63, 68, 87, 88, 106, 107, 110, 121, 122)),
    ("108.0.5359", (71, 72, 94, 95, 98, 99, 124, 125)),
    ("109.0.5414", (74, 75, 87, 119, 120, 129)),
    ("110.0.5481", (77, 78, 96, 97, 100, 104, 177, 178)),
    ("111.0.5563", (64, 65, 110, 111, 146, 147)),
    ("112.0.5615", (49, 50, 86, 87, 121, 137, 138, 165)),
    ("113.0.5672", (63, 64, 92, 93)),
)

_CHROME_VERSIONS = tuple(
    f"{prefix}.{patch}" for prefix, patches in _CHROME_RELEASES for patch in patches
)

# Edge major version and its "build.patch"; the Chrome token is "<major>.0.0.0".
_EDGE_RELEASES = (
    (103, "1264.37"), (104, "1293.47"), (105, "1343.25"), (106, "1370.34"),
    (107, "1418.24"), (108, "1462.42"), (109, "1518.49"), (110, "1587.41"),
    (111, "1661.41"), (112, "1722.34"), (113, "1774.3"),
)

_EDGE_VERSIONS = tuple((f"{major}.0.0.0", f"{major}.0.{build}") for major, build in _EDGE_RELEASES)

# Per Opera major: the Chrome major it ships with and "chrome-build:opera-build" pairs.
_OPERA_RELEASES = (
    (110, 96,
     "5449.0:4640.0 5464.2:4653.0 5464.2:4660.0 5481.30:4674.0 5481.30:4691.0 "
     "5481.30:4693.12 5481.77:4693.16 5481.100:4693.20 5481.178:4693.31 "
     "5481.178:4693.50 5481.192:4693.80"),
    (111, 97,
     "5532.2:4711.0 5532.2:4704.0 5532.2:4697.0 5562.0:4718.0 5563.19:4719.4 "
     "5563.19:4719.11 5563.41:4719.17 5563.65:4719.26 5563.65:4719.28 "
     "5563.111:4719.43 5563.147:4719.63 5563.147:4719.83"),
    (112, 98,
     "5596.2:4756.0 5596.2:4746.0 5615.20:4759.1 5615.50:4759.3 5615.87:4759.6 "
     "5615.165:4759.15 5615.165:4759.21 5615.165:4759.39"),
)

_OPERA_VERSIONS = tuple(
    (f"{chrome_major}.0.{chrome_build}", f"{opera_major}.0.{opera_build}")
    for chrome_major, opera_major, pairs in _OPERA_RELEASES
    for chrome_build, opera_build in (pair.split(":") for pair in pairs.split())
)

_PIXEL7_ANDROID = ("13",)
_PIXEL6_ANDROID = ("12", "13")
_PIXEL5_ANDROID = ("11", "12", "13")
_PIXEL4_ANDROID = ("10", "11", "12", "13")
_NEXUS10_ANDROID = ("4.4.2", "4.4.4", "5.0", "5.0.1", "5.0.2", "5.1", "5.1.1")

_NEXUS10_BUILDS = (
    "LMY49M", "LMY49J", "LMY49I", "LMY49H", "LMY49G", "LMY49F", "LMY48Z",
    "LMY48X", "LMY48T", "LMY48M", "LMY48I", "LMY47V", "LMY47D", "LRX22G",
    "LRX22C", "LRX21P", "KTU84P", "KTU84L", "KOT49H", "KOT49E", "KRT16S",
    "JWR66Y", "JWR66V", "JWR66N", "JDQ39 ", "JOP40F", "JOP40D", "JOP40C",
)

_MAC_RELEASES = (
    "10_13", "10_13_1", "10_13_2", "10_13_3", "10_13_4", "10_13_5", "10_13_6",
    "10_14", "10_14_1", "10_14_2", "10_14_3", "10_14_4", "10_14_5", "10_14_6",
    "10_15", "10_15_1", "10_15_2", "10_15_3", "10_15_4", "10_15_5", "10_15_6", "10_15_7",
    "11_0", "11_0_1", "11_1", "11_2", "11_2_1", "11_2_2", "11_2_3", "11_3", "11_3_1",
    "11_4", "11_5", "11_5_1", "11_5_2", "11_6", "11_6_1", "11_6_2", "11_6_3",
    "11_6_4", "11_6_5", "11_6_6", "11_6_7", "11_6_8", "11_7", "11_7_1", "11_7_2",
    "11_7_3", "11_7_4", "11_7_5", "11_7_6",
    "12_0", "12_0_1", "12_1", "12_2", "12_2_1", "12_3", "12_3_1", "12_4", "12_5",
    "12_5_1", "12_6", "12_6_1", "12_6_2", "12_6_3", "12_6_4", "12_6_5",
    "13_0", "13_0_1", "13_1", "13_2", "13_2_1", "13_3", "13_3_1",
)

_OS_STRINGS = tuple(f"Macintosh; Intel Mac OS X {release}" for release in _MAC_RELEASES) + (
    "Windows NT 10.0; Win64; x64",
    "Windows NT 5.1",
    "Windows NT 6.1; WOW64",
    "Windows NT 6.1; Win64; x64",
    "X11; Linux x86_64",
)

_WEBKIT = "AppleWebKit/537.36 (KHTML, like Gecko)"


def _firefox_ua() -> str:
    version = random.choice(_FIREFOX_VERSIONS)
    system = random.choice(_OS_STRINGS)
    return f"Mozilla/5.0 ({system}; rv:{version:.1f}) Gecko/20100101 Firefox/{version:.1f}"


def _chrome_ua() -> str:
    version = random.choice(_CHROME_VERSIONS)
    system = random.choice(_OS_STRINGS)
    return f"Mozilla/5.0 ({system}) {_WEBKIT} Chrome/{version} Safari/537.36"


def _edge_ua() -> str:
    chrome, edge = random.choice(_EDGE_VERSIONS)
    system = random.choice(_OS_STRINGS)
    return f"Mozilla/5.0 ({system}) {_WEBKIT} Chrome/{chrome} Safari/537.36 Edg/{edge}"


def _opera_ua() -> str:
    chrome, opera = random.choice(_OPERA_VERSIONS)
    system = random.choice(_OS_STRINGS)
    return f"Mozilla/5.0 ({system}) {_WEBKIT} Chrome/{chrome} Safari/537.36 OPR/{opera}"


def _pixel_ua(model: str, android_versions: tuple[str, ...]) -> Callable[[], str]:
    def generate() -> str:
        android = random.choice(android_versions)
        chrome = random.choice(_CHROME_VERSIONS)
        return f"Mozilla/5.0 (Linux; Android {android}; {model}) {_WEBKIT} Chrome/{chrome} Safari/537.36"

    return generate


def _nexus10_ua() -> str:
    build = random.choice(_NEXUS10_BUILDS)
    android = random.choice(_NEXUS10_ANDROID)
    chrome = random.choice(_CHROME_VERSIONS)
    return (
        f"Mozilla/5.0 (Linux; Android {android}; Nexus 10 Build/{build}) "
        f"{_WEBKIT} Chrome/{chrome} Safari/537.36"
    )


_DESKTOP_GENERATORS: tuple[Callable[[], str], ...] = (_firefox_ua, _chrome_ua, _edge_ua, _opera_ua)

_MOBILE_GENERATORS: tuple[Callable[[], str], ...] = (
    _pixel_ua("Pixel 7", _PIXEL7_ANDROID),
    _pixel_ua("Pixel 6", _PIXEL6_ANDROID),
    _pixel_ua("Pixel 5", _PIXEL5_ANDROID),
    _pixel_ua("Pixel 4", _PIXEL4_ANDROID),
    _nexus10_ua,
)


def random_desktop_user_agent() -> str:
    """A random desktop browser user agent: Firefox, Chrome, Edge or Opera."""
    return random.choice(_DESKTOP_GENERATORS)()


def random_mobile_user_agent() -> str:
    """A random mobile browser user agent: a Pixel or Nexus 10 device."""
    return random.choice(_MOBILE_GENERATORS)()


def random_user_agent(request: Request) -> None:
    """Request hook that sets a random desktop User-Agent header."""
    request.headers["User-Agent"] = random_desktop_user_agent()


def random_mobile_user_agent_hook(request: Request) -> None:
    """Request hook that sets a random mobile User-Agent header."""
    request.headers["User-Agent"] = random_mobile_user_agent()


def referer_on_response(response: Response) -> None:
    """Response hook that remembers the page URL in the shared context.

    Together with referer_on_request it sets a Referer header on requests
    that are made from the page and share its context.
    """
    if response.request is None:
        return
    ctx = response.ctx if response.ctx is not None else response.request.ctx
    ctx[_REFERER_KEY] = response.request.url


def referer_on_request(request: Request) -> None:
    """Request hook that sets the Referer header from the shared context."""
    referer = request.ctx.get(_REFERER_KEY) if request.ctx is not None else None
    if referer:
        request.headers["Referer"] = referer


def url_length_filter(limit: int) -> Callable[[Request], None]:
    """Return a request hook that aborts requests whose URL exceeds the limit."""

    def hook(request: Request) -> None:
        if len(request.url) > limit:
            request.abort()

    return hook
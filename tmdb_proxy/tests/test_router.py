import random
import string

import pytest

from tmdb_proxy.models.route import RouteKind
from tmdb_proxy.services.router import Router, decide


@pytest.fixture
def router():
    return Router()


@pytest.mark.parametrize(
    "path,kind",
    [
        ("/health", RouteKind.HEALTH),
        ("/ping", RouteKind.HEALTH),
        ("/admin/status", RouteKind.ADMIN_STATUS),
        ("/", RouteKind.ROOT_DISGUISE),
        ("", RouteKind.ROOT_DISGUISE),
        ("/t/p/w500/abc.jpg", RouteKind.IMAGE_PROXY),
        ("/3/movie/popular", RouteKind.API_PROXY),
        ("/3/", RouteKind.API_PROXY),
        ("/t/p", RouteKind.NOT_FOUND),
        ("/3", RouteKind.NOT_FOUND),
        ("/health/", RouteKind.NOT_FOUND),
        ("/admin/status/x", RouteKind.NOT_FOUND),
        ("/HEALTH", RouteKind.NOT_FOUND),
        ("/x/t/p/w500/abc.jpg", RouteKind.NOT_FOUND),
        ("/docs", RouteKind.NOT_FOUND),
    ],
)
def test_route_classes(router, path, kind):
    assert router.decide("GET", path).kind == kind


def test_proxy_routes_keep_the_full_path(router):
    assert router.decide("GET", "/t/p/w500/abc.jpg").path == "/t/p/w500/abc.jpg"
    assert router.decide("POST", "/3/movie/550/rating").path == "/3/movie/550/rating"


def test_local_routes_carry_no_path(router):
    assert router.decide("GET", "/health").path == ""
    assert router.decide("GET", "/nope").path == ""


@pytest.mark.parametrize("path", ["/", "/health", "/3/movie/1", "/t/p/w92/a.png", "/zzz"])
def test_options_is_preflight_on_every_path(router, path):
    assert router.decide("OPTIONS", path).kind == RouteKind.PREFLIGHT
    assert router.decide("options", path).kind == RouteKind.PREFLIGHT


def test_method_does_not_change_non_preflight_routes(router):
    for method in ("GET", "HEAD", "POST", "PUT", "DELETE", "PATCH"):
        assert router.decide(method, "/3/movie/1").kind == RouteKind.API_PROXY


def test_random_paths_are_not_found(router):
    rng = random.Random(1234)
    alphabet = string.ascii_letters + string.digits + "/-_.%~"
    known = {"/health", "/ping", "/admin/status", "/", ""}
    checked = 0
    while checked < 500:
        path = "/" + "".join(rng.choice(alphabet) for _ in range(rng.randint(0, 24)))
        if path in known or path.startswith("/t/p/") or path.startswith("/3/"):
            continue
        assert router.decide("GET", path).kind == RouteKind.NOT_FOUND, path
        checked += 1


def test_decision_is_immutable(router):
    decision = router.decide("GET", "/3/movie/1")
    with pytest.raises(Exception):
        decision.kind = RouteKind.HEALTH


def test_module_level_decide():
    assert decide("GET", "/ping").kind == RouteKind.HEALTH


def test_decision_carries_only_kind_and_path(router):
    decision = router.decide("GET", "/3/movie/550")

    assert decision.model_dump() == {"kind": RouteKind.API_PROXY, "path": "/3/movie/550"}

import json

import pytest
import requests

from shulkers import ModrinthAPI
from shulkers.client import EMPTY
from shulkers.exceptions import ModrinthError, ModrinthErrorCode
from shulkers.facets import Facet, FacetBuilder, FacetGroup, FacetOperator
from shulkers.types_models import ModrinthSortIndex

BASE = "https://api.modrinth.com/v2"
CDN = "https://cdn.modrinth.com/data/AANobbMI/versions/abc/sodium-fabric-0.5.3.jar"

VERSION = {
    "id": "abc",
    "project_id": "AANobbMI",
    "version_number": "0.5.3",
    "game_versions": ["1.20.1"],
    "loaders": ["fabric"],
    "files": [
        {"url": "https://cdn.modrinth.com/sources.jar", "filename": "sodium-sources.jar", "primary": False,
         "hashes": {"sha1": "111"}},
        {"url": CDN, "filename": "sodium-fabric-0.5.3.jar", "primary": True, "hashes": {"sha1": "222"}},
    ],
}


@pytest.fixture
def modrinth(session):
    return ModrinthAPI(session=session, user_agent="tester/modpack/1.0")


def called(session, index=-1):
    args, kwargs = session.request.call_args_list[index]
    return args[0], args[1], kwargs


class TestSearch:
    def test_search_with_builder(self, modrinth, session, make_response):
        session.request.return_value = make_response(200, {
            "hits": [{"project_id": "AANobbMI", "slug": "sodium", "downloads": 5}],
            "offset": 0, "limit": 5, "total_hits": 1,
        })
        facets = (FacetBuilder()
                  .add_group(FacetGroup.categories(["fabric", "quilt"]))
                  .add_facet(Facet.downloads(FacetOperator.GREATER_THAN_OR_EQUAL, 1000)))

        results = modrinth.search_projects("sodium", facets=facets, index=ModrinthSortIndex.DOWNLOADS, limit=5)

        assert results.total_hits == 1
        assert results.hits[0].slug == "sodium"
        method, url, kwargs = called(session)
        assert (method, url) == ("GET", f"{BASE}/search")
        assert kwargs["params"] == {
            "index": "downloads",
            "offset": 0,
            "limit": 5,
            "query": "sodium",
            "facets": '[["categories:fabric","categories:quilt"],["downloads>=1000"]]',
        }
        assert kwargs["headers"]["User-Agent"] == "tester/modpack/1.0"

    def test_empty_facets_and_query_are_omitted(self, modrinth, session, make_response):
        session.request.return_value = make_response(200, {"hits": [], "offset": 0, "limit": 10, "total_hits": 0})

        modrinth.search_projects(facets=FacetBuilder())

        assert called(session)[2]["params"] == {"index": "relevance", "offset": 0, "limit": 10}

    def test_flat_facet_list_is_one_group(self, modrinth, session, make_response):
        session.request.return_value = make_response(200, {"hits": []})
        modrinth.search_projects("x", facets=[Facet.versions("1.20.1"), Facet.versions("1.19.4")])
        assert json.loads(called(session)[2]["params"]["facets"]) == [["versions:1.20.1", "versions:1.19.4"]]

    def test_invalid_facets_are_rejected_before_request(self, modrinth, session):
        with pytest.raises(TypeError):
            modrinth.search_projects("x", facets=3)
        session.request.assert_not_called()

    def test_bad_request_maps_to_invalid_parameters(self, modrinth, session, make_response):
        session.request.return_value = make_response(400, {"error": "invalid_input"})
        with pytest.raises(ModrinthError) as exc_info:
            modrinth.search_projects("x", facets='[["nope"]]')
        assert exc_info.value.code is ModrinthErrorCode.INVALID_SEARCH_PARAMETERS


class TestProjects:
    def test_get_project_by_slug(self, modrinth, session, make_response):
        session.request.return_value = make_response(200, {"id": "AANobbMI", "slug": "sodium", "title": "Sodium"})
        project = modrinth.get_project("sodium")
        assert project.title == "Sodium"
        assert called(session)[1] == f"{BASE}/project/sodium"

    def test_no_content_project_is_invalid_response(self, modrinth, session, make_response):
        session.request.return_value = make_response(204)
        with pytest.raises(ModrinthError) as exc_info:
            modrinth.get_project("sodium")
        assert exc_info.value.code is ModrinthErrorCode.INVALID_RESPONSE
        assert exc_info.value.context["expected"] == "object"

    def test_object_where_array_expected_is_invalid_response(self, modrinth, session, make_response):
        session.request.return_value = make_response(200, {"error": "not_found"})
        with pytest.raises(ModrinthError) as exc_info:
            modrinth.get_projects(["a"])
        assert exc_info.value.code is ModrinthErrorCode.INVALID_RESPONSE
        assert exc_info.value.context["actual"] == "dict"

    def test_get_projects_sends_json_ids(self, modrinth, session, make_response):
        session.request.return_value = make_response(200, [{"id": "a"}, {"id": "b"}])
        assert [p.id for p in modrinth.get_projects(["a", "b"])] == ["a", "b"]
        assert called(session)[2]["params"] == {"ids": '["a","b"]'}

    @pytest.mark.parametrize("count", [-1, 101])
    def test_random_count_validated_before_request(self, modrinth, session, count):
        with pytest.raises(ModrinthError) as exc_info:
            modrinth.get_random_projects(count)
        assert exc_info.value.code is ModrinthErrorCode.INVALID_SEARCH_PARAMETERS
        assert exc_info.value.context == {"count": count}
        session.request.assert_not_called()

    @pytest.mark.parametrize("count", [0, 100])
    def test_random_count_bounds_are_inclusive(self, modrinth, session, make_response, count):
        session.request.return_value = make_response(200, [])
        assert modrinth.get_random_projects(count) == []
        assert called(session)[2]["params"] == {"count": count}

    def test_project_versions_filters(self, modrinth, session, make_response):
        session.request.return_value = make_response(200, [VERSION])

        versions = modrinth.get_project_versions("sodium", loaders=["fabric"], game_versions=["1.20.1"],
                                                 featured=True)

        assert versions[0].version_number == "0.5.3"
        method, url, kwargs = called(session)
        assert url == f"{BASE}/project/sodium/version"
        assert kwargs["params"] == {"loaders": '["fabric"]', "game_versions": '["1.20.1"]', "featured": "true"}

    def test_dependencies(self, modrinth, session, make_response):
        session.request.return_value = make_response(200, {"projects": [{"id": "P"}], "versions": [VERSION]})
        deps = modrinth.get_project_dependencies("sodium")
        assert deps["projects"][0].id == "P"
        assert deps["versions"][0].id == "abc"

    def test_check_validity_missing_project(self, modrinth, session, make_response):
        session.request.return_value = make_response(404)
        with pytest.raises(ModrinthError) as exc_info:
            modrinth.check_project_validity("does-not-exist")
        assert exc_info.value.code is ModrinthErrorCode.RESOURCE_NOT_FOUND


class TestVersionFiles:
    def test_version_from_hash(self, modrinth, session, make_response):
        session.request.return_value = make_response(200, VERSION)
        version = modrinth.get_version_from_hash("222")
        assert version.id == "abc"
        method, url, kwargs = called(session)
        assert url == f"{BASE}/version_file/222"
        assert kwargs["params"] == {"algorithm": "sha1", "multiple": "false"}

    def test_versions_from_hashes_posts_body(self, modrinth, session, make_response):
        session.request.return_value = make_response(200, {"222": VERSION})

        result = modrinth.get_versions_from_hashes(["222", "333"], algorithm="sha512")

        assert list(result) == ["222"]
        assert result["222"].primary_file.filename == "sodium-fabric-0.5.3.jar"
        method, url, kwargs = called(session)
        assert (method, url) == ("POST", f"{BASE}/version_files")
        assert kwargs["json"] == {"hashes": ["222", "333"], "algorithm": "sha512"}

    def test_latest_version_from_hash(self, modrinth, session, make_response):
        session.request.return_value = make_response(200, VERSION)
        modrinth.get_latest_version_from_hash("222", loaders=["fabric"])
        method, url, kwargs = called(session)
        assert (method, url) == ("POST", f"{BASE}/version_file/222/update")
        assert kwargs["json"] == {"loaders": ["fabric"], "game_versions": []}
        assert kwargs["params"] == {"algorithm": "sha1"}

    def test_post_is_not_retried(self, modrinth, session, make_response, no_sleep):
        session.request.return_value = make_response(503, headers={"Retry-After": "1"})
        with pytest.raises(ModrinthError) as exc_info:
            modrinth.get_latest_versions_from_hashes(["222"])
        assert exc_info.value.code is ModrinthErrorCode.API_REQUEST_FAILED
        assert session.request.call_count == 1


class TestUsersTagsMisc:
    def test_user_and_team(self, modrinth, session, make_response):
        session.request.side_effect = [
            make_response(200, {"id": "u1", "username": "jellysquid3"}),
            make_response(200, [[{"team_id": "t1", "user": {"username": "a"}, "role": "Owner"}], []]),
        ]
        assert modrinth.get_user("jellysquid3").id == "u1"
        teams = modrinth.get_teams(["t1", "t2"])
        assert teams[0][0].user.username == "a"
        assert teams[1] == []
        assert called(session, 1)[2]["params"] == {"ids": '["t1","t2"]'}

    def test_tags(self, modrinth, session, make_response):
        session.request.side_effect = [
            make_response(200, [{"name": "fabric", "icon": "<svg/>"}]),
            make_response(200, ["mod", "modpack"]),
        ]
        assert modrinth.get_loaders()[0]["name"] == "fabric"
        assert modrinth.get_project_types() == ["mod", "modpack"]
        assert called(session, 0)[1] == f"{BASE}/tag/loader"
        assert called(session, 1)[1] == f"{BASE}/tag/project_type"

    def test_empty_tag_body_is_empty(self, modrinth, session, make_response):
        session.request.return_value = make_response(200, content=b"")
        assert modrinth.get_loaders() is EMPTY

    def test_hash_lookup_with_malformed_entry(self, modrinth, session, make_response):
        session.request.return_value = make_response(200, {"222": "abc"})
        with pytest.raises(ModrinthError) as exc_info:
            modrinth.get_versions_from_hashes(["222"])
        assert exc_info.value.code is ModrinthErrorCode.INVALID_RESPONSE

    def test_statistics(self, modrinth, session, make_response):
        session.request.return_value = make_response(200, {"projects": 1, "versions": 2, "files": 3, "authors": 4})
        assert modrinth.get_statistics()["files"] == 3


class TestDownloads:
    def test_download_version_file_uses_primary(self, modrinth, session, make_response):
        session.request.side_effect = [make_response(200, VERSION), make_response(200, content=b"jar")]

        resp = modrinth.download_version_file("abc")

        assert resp.content == b"jar"
        method, url, kwargs = called(session)
        assert url == CDN
        assert kwargs["stream"] is True

    def test_version_without_files(self, modrinth, session, make_response):
        session.request.return_value = make_response(200, dict(VERSION, files=[]))
        with pytest.raises(ModrinthError) as exc_info:
            modrinth.download_version_file("abc")
        assert exc_info.value.code is ModrinthErrorCode.RESOURCE_NOT_FOUND
        assert session.request.call_count == 1

    def test_download_by_name(self, modrinth, session, make_response):
        session.request.side_effect = [make_response(200, VERSION), make_response(200, content=b"src")]
        modrinth.download_version_file_by_name("abc", "sodium-sources.jar")
        assert called(session)[1] == "https://cdn.modrinth.com/sources.jar"

    def test_download_by_unknown_name(self, modrinth, session, make_response):
        session.request.return_value = make_response(200, VERSION)
        with pytest.raises(ModrinthError) as exc_info:
            modrinth.download_version_file_by_name("abc", "other.jar")
        assert exc_info.value.context["filename"] == "other.jar"

    def test_download_latest_project_file(self, modrinth, session, make_response):
        session.request.side_effect = [
            make_response(200, [VERSION, dict(VERSION, id="older")]),
            make_response(200, VERSION),
            make_response(200, content=b"jar"),
        ]

        modrinth.download_latest_project_file("sodium", loaders=["fabric"])

        assert [called(session, i)[1] for i in range(3)] == [f"{BASE}/project/sodium/version", f"{BASE}/version/abc", CDN]

    def test_download_latest_without_versions(self, modrinth, session, make_response):
        session.request.return_value = make_response(200, [])
        with pytest.raises(ModrinthError) as exc_info:
            modrinth.download_latest_project_file("sodium", game_versions=["1.8.9"])
        assert exc_info.value.code is ModrinthErrorCode.RESOURCE_NOT_FOUND
        assert session.request.call_count == 1

    def test_get_file_content(self, modrinth, session, make_response):
        session.request.return_value = make_response(200, content=b"\x00\x01")
        assert modrinth.get_file_content(CDN) == b"\x00\x01"

    def test_cdn_failure_is_download_failed(self, modrinth, session):
        session.request.side_effect = requests.exceptions.InvalidURL("bad url")
        with pytest.raises(ModrinthError) as exc_info:
            modrinth.download_file("not a url")
        assert exc_info.value.code is ModrinthErrorCode.DOWNLOAD_FAILED

"""Integration tests for the /api/v1/posts endpoints."""

import pytest_asyncio


@pytest_asyncio.fixture()
async def community(client, registered_institution, registered_parent, registered_cuidador, link):
    await link(registered_parent, registered_institution)
    await link(registered_cuidador, registered_institution)
    resp = await client.post("/api/v1/posts/", headers=registered_parent["headers"], json={
        "content": "Alguém indica uma pediatra perto do campus?",
    })
    assert resp.status_code == 201, resp.text
    return {
        "institution": registered_institution,
        "author": registered_parent,
        "member": registered_cuidador,
        "post": resp.json(),
    }


class TestFeed:
    async def test_post_lands_in_linked_community(self, client, community):
        post = community["post"]
        assert post["institution_id"] == community["institution"]["user_id"]
        assert (post["upvotes"], post["downvotes"]) == (0, 0)

        feed = await client.get("/api/v1/posts/", headers=community["member"]["headers"])
        (entry,) = feed.json()
        assert entry["author"]["name"] == "Ana Souza"
        assert entry["my_vote"] is None

    async def test_unlinked_user_cannot_post(self, client, register):
        loner = await register("parent", "Sozinha")
        resp = await client.post("/api/v1/posts/", headers=loner["headers"], json={
            "content": "Olá?",
        })
        assert resp.status_code == 400
        assert resp.json()["kind"] == "no_institution"

    async def test_foreign_community_forbidden(self, client, community, register):
        other = await register("institution", "Outra")
        resp = await client.get(
            f"/api/v1/posts/?institution_id={other['user_id']}",
            headers=community["author"]["headers"],
        )
        assert resp.status_code == 403


class TestVotes:
    async def test_vote_toggle(self, client, community):
        url = f"/api/v1/posts/{community['post']['id']}"
        headers = community["member"]["headers"]

        resp = await client.post(f"{url}/vote", headers=headers, json={"vote_type": "upvote"})
        assert resp.status_code == 200
        assert resp.json()["my_vote"] == "upvote"
        assert resp.json()["post"]["upvotes"] == 1

        mine = await client.get(f"{url}/my-vote", headers=headers)
        assert mine.json() == {"vote_type": "upvote"}

        resp = await client.post(f"{url}/vote", headers=headers, json={"vote_type": "downvote"})
        assert (resp.json()["post"]["upvotes"], resp.json()["post"]["downvotes"]) == (0, 1)

        resp = await client.post(f"{url}/vote", headers=headers, json={"vote_type": "downvote"})
        assert resp.json()["my_vote"] is None
        assert resp.json()["post"]["downvotes"] == 0

        notes = await client.get("/api/v1/notifications/", headers=community["author"]["headers"])
        assert [n["type"] for n in notes.json()] == ["vote", "vote"]

    async def test_invalid_vote_type(self, client, community):
        resp = await client.post(
            f"/api/v1/posts/{community['post']['id']}/vote",
            headers=community["member"]["headers"],
            json={"vote_type": "sideways"},
        )
        assert resp.status_code == 422


class TestModeration:
    async def test_pin_and_flag(self, client, community):
        url = f"/api/v1/posts/{community['post']['id']}"
        inst_headers = community["institution"]["headers"]

        resp = await client.post(f"{url}/pin", headers=inst_headers)
        assert resp.json()["pinned"] is True

        resp = await client.post(f"{url}/flag", headers=inst_headers)
        assert resp.json()["flagged"] is True

        notes = await client.get("/api/v1/notifications/", headers=community["author"]["headers"])
        assert notes.json()[0]["type"] == "post_flagged"
        assert notes.json()[0]["post_id"] == community["post"]["id"]

    async def test_member_cannot_pin(self, client, community):
        resp = await client.post(
            f"/api/v1/posts/{community['post']['id']}/pin",
            headers=community["member"]["headers"],
        )
        assert resp.status_code == 403

    async def test_delete_by_author_only(self, client, community):
        url = f"/api/v1/posts/{community['post']['id']}"

        resp = await client.delete(url, headers=community["member"]["headers"])
        assert resp.status_code == 403

        resp = await client.delete(url, headers=community["author"]["headers"])
        assert resp.status_code == 204

        feed = await client.get("/api/v1/posts/", headers=community["author"]["headers"])
        assert feed.json() == []

"""Tests for the tool directory API."""
from unittest.mock import patch

from fastapi import status

from tests.conftest import ADMIN_EMAIL, OTHER_USER_EMAIL, USER_EMAIL, make_tool
from tools_hub.services.tool_store import ToolStore


def new_tool_payload(**overrides):
    payload = {
        "title": "Scenario Desk",
        "description": "Structures loan scenarios",
        "url": "https://scenario.example.com",
        "category": "CMG Product",
        "features": ["Pricing", ""],
        "accentColor": "blue",
    }
    payload.update(overrides)
    return payload


class TestListing:
    """Test who sees which tools."""

    def seed_mixed(self, seed_tools):
        seed_tools(
            make_tool(id="pub", status="published", createdBy=OTHER_USER_EMAIL),
            make_tool(id="mine", status="pending", createdBy=USER_EMAIL),
            make_tool(id="theirs", status="pending", createdBy=OTHER_USER_EMAIL),
            make_tool(id="rejected-mine", status="rejected", createdBy=USER_EMAIL, rejectionReason="Fix"),
        )

    def test_anonymous_sees_published_only(self, client, seed_tools):
        self.seed_mixed(seed_tools)

        response = client.get("/api/tools")
        assert response.status_code == status.HTTP_200_OK
        assert [t["id"] for t in response.json()["tools"]] == ["pub"]

    def test_user_sees_own_submissions_by_default(self, client, login, seed_tools):
        """Test a plain listing includes the caller's pending and rejected tools."""
        self.seed_mixed(seed_tools)
        login(USER_EMAIL)

        response = client.get("/api/tools")
        assert [t["id"] for t in response.json()["tools"]] == ["pub", "mine", "rejected-mine"]

    def test_all_filter_matches_default(self, client, login, seed_tools):
        self.seed_mixed(seed_tools)
        login(USER_EMAIL)

        default = client.get("/api/tools").json()["tools"]
        explicit = client.get("/api/tools", params={"status": "all"}).json()["tools"]
        assert explicit == default

    def test_admin_sees_everything(self, client, login, seed_tools):
        """Test the approval queue shows up without a filter."""
        self.seed_mixed(seed_tools)
        login(ADMIN_EMAIL)

        response = client.get("/api/tools")
        assert [t["id"] for t in response.json()["tools"]] == ["pub", "mine", "theirs", "rejected-mine"]

    def test_admin_filters_by_status(self, client, login, seed_tools):
        self.seed_mixed(seed_tools)
        login(ADMIN_EMAIL)

        response = client.get("/api/tools", params={"status": "pending"})
        assert [t["id"] for t in response.json()["tools"]] == ["mine", "theirs"]

    def test_user_status_filter_keeps_visibility(self, client, login, seed_tools):
        self.seed_mixed(seed_tools)
        login(USER_EMAIL)

        response = client.get("/api/tools", params={"status": "pending"})
        assert [t["id"] for t in response.json()["tools"]] == ["mine"]

    def test_invalid_status_filter(self, client):
        response = client.get("/api/tools", params={"status": "archived"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["success"] is False

    def test_get_hidden_tool_is_not_found(self, client, login, seed_tools):
        self.seed_mixed(seed_tools)
        login(USER_EMAIL)

        assert client.get("/api/tools/theirs").status_code == status.HTTP_404_NOT_FOUND
        assert client.get("/api/tools/mine").status_code == status.HTTP_200_OK

    def test_get_unknown_tool(self, client):
        response = client.get("/api/tools/nope")
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {"success": False, "error": "Tool not found"}


class TestSubmission:
    """Test creating tools."""

    def test_submit_requires_auth(self, client):
        response = client.post("/api/tools", json=new_tool_payload())
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_submit_creates_pending_tool(self, client, login, dispatcher, stored_tools):
        login(USER_EMAIL)

        response = client.post("/api/tools", json=new_tool_payload(status="published"))
        assert response.status_code == status.HTTP_200_OK
        tool = response.json()["tool"]
        assert tool["status"] == "pending"
        assert tool["createdBy"] == USER_EMAIL
        assert tool["features"] == ["Pricing"]
        assert "approvedBy" not in tool

        assert [t["id"] for t in stored_tools()] == [tool["id"]]
        assert dispatcher.kinds == ["pending_approval"]

    def test_submit_requires_title_and_url(self, client, login):
        login(USER_EMAIL)

        response = client.post("/api/tools", json={"description": "No title"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_submit_is_audited(self, client, login):
        login(USER_EMAIL)
        tool_id = client.post("/api/tools", json=new_tool_payload()).json()["tool"]["id"]

        login(ADMIN_EMAIL)
        logs = client.get(f"/api/audit-logs/tools/{tool_id}").json()["logs"]
        assert [log["action"] for log in logs] == ["tool_created"]
        assert logs[0]["performedBy"] == USER_EMAIL


class TestModeration:
    """Test approve, reject, publish and delete."""

    def test_admin_approves(self, client, login, dispatcher, seed_tools):
        seed_tools(make_tool())
        login(ADMIN_EMAIL)

        response = client.put("/api/tools/tool-1/approve", json={"updates": {"title": "Guideline Genius"}})
        assert response.status_code == status.HTTP_200_OK
        tool = response.json()["tool"]
        assert tool["status"] == "published"
        assert tool["approvedBy"] == ADMIN_EMAIL
        assert tool["title"] == "Guideline Genius"
        assert dispatcher.kinds == ["approved"]

    def test_approve_without_body(self, client, login, seed_tools):
        seed_tools(make_tool())
        login(ADMIN_EMAIL)

        response = client.put("/api/tools/tool-1/approve")
        assert response.json()["tool"]["status"] == "published"

    def test_non_admin_cannot_approve(self, client, login, dispatcher, seed_tools, stored_tools):
        seed_tools(make_tool())
        login(USER_EMAIL)

        response = client.put("/api/tools/tool-1/approve")
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error"] == "Unauthorized"
        assert stored_tools()[0]["status"] == "pending"
        assert dispatcher.sent == []

    def test_approve_unknown_tool(self, client, login):
        login(ADMIN_EMAIL)

        response = client.put("/api/tools/missing/approve")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_delete_with_reason_rejects(self, client, login, dispatcher, seed_tools, stored_tools):
        """Test the combined endpoint keeps the tool when a reason is given."""
        seed_tools(make_tool())
        login(ADMIN_EMAIL)

        response = client.request("DELETE", "/api/tools/tool-1", json={"rejectionReason": "Needs a demo video"})
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"success": True, "message": "Tool rejected"}

        stored = stored_tools()
        assert len(stored) == 1
        assert stored[0]["status"] == "rejected"
        assert stored[0]["rejectionReason"] == "Needs a demo video"
        assert dispatcher.kinds == ["rejected"]

    def test_delete_without_reason_removes(self, client, login, dispatcher, seed_tools, stored_tools):
        seed_tools(make_tool(), make_tool(id="tool-2"))
        login(ADMIN_EMAIL)

        response = client.delete("/api/tools/tool-1")
        assert response.json() == {"success": True, "message": "Tool deleted"}
        assert [t["id"] for t in stored_tools()] == ["tool-2"]
        assert dispatcher.sent == []

    def test_delete_with_blank_reason_removes(self, client, login, seed_tools, stored_tools):
        seed_tools(make_tool())
        login(ADMIN_EMAIL)

        client.request("DELETE", "/api/tools/tool-1", json={"rejectionReason": "   "})
        assert stored_tools() == []

    def test_non_admin_cannot_delete(self, client, login, seed_tools, stored_tools):
        seed_tools(make_tool())
        login(USER_EMAIL)

        response = client.delete("/api/tools/tool-1")
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert len(stored_tools()) == 1

    def test_explicit_reject_endpoint(self, client, login, seed_tools):
        seed_tools(make_tool())
        login(ADMIN_EMAIL)

        response = client.post("/api/tools/tool-1/reject", json={"reason": "Duplicate of Scenario Desk"})
        assert response.json()["tool"]["rejectionReason"] == "Duplicate of Scenario Desk"

    def test_reject_requires_reason(self, client, login, seed_tools):
        seed_tools(make_tool())
        login(ADMIN_EMAIL)

        response = client.post("/api/tools/tool-1/reject", json={"reason": " "})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unpublish_with_notification(self, client, login, dispatcher, seed_tools):
        seed_tools(make_tool(status="published"))
        login(ADMIN_EMAIL)

        response = client.put(
            "/api/tools/tool-1/publish",
            json={"status": "unpublished", "sendEmailNotification": True},
        )
        assert response.json()["tool"]["status"] == "unpublished"
        assert dispatcher.kinds == ["unpublished"]

    def test_publish_rejects_other_literals(self, client, login, seed_tools):
        seed_tools(make_tool(status="published"))
        login(ADMIN_EMAIL)

        response = client.put("/api/tools/tool-1/publish", json={"status": "pending"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestResubmit:
    """Test resubmitting rejected tools."""

    def test_owner_resubmits(self, client, login, dispatcher, seed_tools, stored_tools):
        seed_tools(make_tool(status="rejected", rejectedBy=ADMIN_EMAIL, rejectionReason="Add video"))
        login(USER_EMAIL)

        response = client.put("/api/tools/tool-1/resubmit", json={"updates": {"videoUrl": "https://v.example.com"}})
        assert response.status_code == status.HTTP_200_OK

        stored = stored_tools()[0]
        assert stored["status"] == "pending"
        assert stored["videoUrl"] == "https://v.example.com"
        assert "rejectionReason" not in stored
        assert "rejectedBy" not in stored
        assert dispatcher.kinds == ["pending_approval"]

    def test_other_user_cannot_resubmit(self, client, login, seed_tools):
        seed_tools(make_tool(status="rejected", rejectionReason="Add video"))
        login(OTHER_USER_EMAIL)

        response = client.put("/api/tools/tool-1/resubmit")
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_cannot_resubmit_pending_tool(self, client, login, seed_tools):
        seed_tools(make_tool())
        login(USER_EMAIL)

        response = client.put("/api/tools/tool-1/resubmit")
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Tool is not in rejected status"


class TestUpdate:
    """Test the generic admin edit."""

    def test_admin_edits_fields(self, client, login, seed_tools):
        seed_tools(make_tool(status="published"))
        login(ADMIN_EMAIL)

        response = client.put("/api/tools/tool-1", json={"description": "Sharper copy", "upvotes": 999})
        tool = response.json()["tool"]
        assert tool["description"] == "Sharper copy"
        assert tool["upvotes"] == 0
        assert tool["status"] == "published"

    def test_status_routes_through_publication(self, client, login, dispatcher, seed_tools):
        seed_tools(make_tool(status="published"))
        login(ADMIN_EMAIL)

        response = client.put(
            "/api/tools/tool-1",
            json={"status": "unpublished", "sendEmailNotification": True},
        )
        assert response.json()["tool"]["status"] == "unpublished"
        assert dispatcher.kinds == ["unpublished"]

        logs = client.get("/api/audit-logs/tools/tool-1").json()["logs"]
        assert [log["action"] for log in logs] == ["tool_unpublished"]

    def test_status_cannot_bypass_approval(self, client, login, seed_tools, stored_tools):
        seed_tools(make_tool(status="rejected", rejectionReason="No"))
        login(ADMIN_EMAIL)

        response = client.put("/api/tools/tool-1", json={"status": "pending"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert stored_tools()[0]["status"] == "rejected"

    def test_non_admin_cannot_edit(self, client, login, seed_tools):
        seed_tools(make_tool())
        login(USER_EMAIL)

        response = client.put("/api/tools/tool-1", json={"title": "Hijacked"})
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_title_and_url_cannot_be_cleared(self, client, login, seed_tools, stored_tools):
        seed_tools(make_tool(status="published"))
        login(ADMIN_EMAIL)

        response = client.put("/api/tools/tool-1", json={"title": None, "url": None})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

        stored = stored_tools()[0]
        assert stored["title"] == "Guideline Assistant"
        assert stored["url"] == "https://example.cmgfi.com/guidelines"

    def test_approve_edits_cannot_clear_title(self, client, login, seed_tools, stored_tools):
        seed_tools(make_tool())
        login(ADMIN_EMAIL)

        response = client.put("/api/tools/tool-1/approve", json={"updates": {"title": None}})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert stored_tools()[0]["status"] == "pending"
        assert stored_tools()[0]["title"] == "Guideline Assistant"

    def test_resubmit_edits_cannot_clear_url(self, client, login, seed_tools, stored_tools):
        seed_tools(make_tool(status="rejected", rejectionReason="Add video"))
        login(USER_EMAIL)

        response = client.put("/api/tools/tool-1/resubmit", json={"updates": {"url": None}})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert stored_tools()[0]["url"] == "https://example.cmgfi.com/guidelines"

    def test_edits_and_status_saved_together(self, client, login, dispatcher, seed_tools, stored_tools):
        """Test field edits and a status change are one save of the collection."""
        seed_tools(make_tool(status="published"))
        login(ADMIN_EMAIL)

        original_save = ToolStore.save
        with patch.object(ToolStore, "save", autospec=True, side_effect=original_save) as save:
            response = client.put(
                "/api/tools/tool-1",
                json={"title": "Guideline Genius", "status": "unpublished", "sendEmailNotification": True},
            )

        assert response.status_code == status.HTTP_200_OK
        assert save.call_count == 1

        stored = stored_tools()[0]
        assert stored["title"] == "Guideline Genius"
        assert stored["status"] == "unpublished"
        assert dispatcher.kinds == ["unpublished"]


class TestEngagement:
    """Test votes and ratings through the API."""

    def test_vote_without_login(self, client, seed_tools):
        seed_tools(make_tool(status="published"))

        response = client.put("/api/tools/tool-1/vote", json={"voteType": "up"})
        assert response.json()["tool"]["upvotes"] == 1

    def test_invalid_vote_type(self, client, seed_tools):
        seed_tools(make_tool(status="published"))

        response = client.put("/api/tools/tool-1/vote", json={"voteType": "meh"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_rate(self, client, seed_tools):
        seed_tools(make_tool(status="published", rating=4.0, ratingCount=2))

        tool = client.put("/api/tools/tool-1/rate", json={"rating": 5}).json()["tool"]
        assert tool["rating"] == 4.3
        assert tool["ratingCount"] == 3

    def test_rating_out_of_range(self, client, seed_tools):
        seed_tools(make_tool(status="published"))

        response = client.put("/api/tools/tool-1/rate", json={"rating": 6})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_engagement_not_audited(self, client, login, seed_tools):
        seed_tools(make_tool(status="published"))
        client.put("/api/tools/tool-1/vote", json={"voteType": "down"})

        login(ADMIN_EMAIL)
        assert client.get("/api/audit-logs").json()["count"] == 0


class TestBackfillTags:
    """Test keyword tag backfill."""

    def test_requires_admin(self, client, login):
        login(USER_EMAIL)

        response = client.post("/api/tools/backfill-tags")
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_tags_untagged_tools(self, client, login, seed_tools):
        seed_tools(
            make_tool(id="a", title="Jumbo Loan Analyzer", description="Mortgage guideline analysis", tags=[]),
            make_tool(id="b", tags=["Keep"]),
        )
        login(ADMIN_EMAIL)

        body = client.post("/api/tools/backfill-tags").json()
        assert body["updated"] == 1
        assert body["skipped"] == 1

        tags = {tool["id"]: tool["tags"] for tool in body["tools"]}
        assert tags["b"] == ["Keep"]
        assert tags["a"][:3] == ["AI", "Automation", "CMG Internal"]
        assert len(tags["a"]) == 5

import pytest

from agora.communities.domain.community_messages_service import CommunityMessagesService
from agora.communities.domain.exceptions import ForbiddenError, NotFoundError
from agora.infra.auth import AuthenticatedUser

OWNER = AuthenticatedUser(id=1)
MEMBER = AuthenticatedUser(id=2)
MODERATOR = AuthenticatedUser(id=3)
OUTSIDER = AuthenticatedUser(id=4)


@pytest.fixture
def service(messages_repo, communities_repo):
	communities_repo.add_community(10, owner=OWNER.id)
	communities_repo.add_member(MEMBER.id, 10)
	communities_repo.add_member(MODERATOR.id, 10)
	communities_repo.add_admin(10, MODERATOR.id, ["manage_posts"])
	return CommunityMessagesService(repository=messages_repo, communities=communities_repo)


@pytest.mark.asyncio
async def test_member_message_is_broadcast_to_room(service):
	result = await service.send(MEMBER, 10, "hello all")

	(effect,) = result.effects
	assert effect.room == "community:10"
	assert effect.event == "receive-community-message"
	assert effect.payload["content"] == "hello all"
	assert not effect.exclude_origin


@pytest.mark.asyncio
async def test_owner_without_membership_row_may_send(service):
	result = await service.send(OWNER, 10, "welcome")
	assert result.data["sender_id"] == OWNER.id


@pytest.mark.asyncio
async def test_non_member_is_rejected(service, communities_repo):
	communities_repo.add_member(OUTSIDER.id, 10, removed=True)

	with pytest.raises(ForbiddenError) as excinfo:
		await service.send(OUTSIDER, 10, "let me in")
	assert excinfo.value.detail == "You are not a member in this community"


@pytest.mark.asyncio
async def test_unknown_community(service):
	with pytest.raises(NotFoundError):
		await service.send(MEMBER, 404, "anyone?")


@pytest.mark.asyncio
async def test_sender_updates_message(service):
	sent = await service.send(MEMBER, 10, "draft")

	result = await service.update(MEMBER, sent.data["id"], "final")

	assert result.data["content"] == "final"
	assert result.effects[0].event == "update-message-community"


@pytest.mark.asyncio
async def test_moderator_and_owner_may_delete(service):
	first = await service.send(MEMBER, 10, "spam")
	second = await service.send(MEMBER, 10, "more spam")

	moderated = await service.delete(MODERATOR, first.data["id"])
	owned = await service.delete(OWNER, second.data["id"])

	assert moderated.effects[0].event == "delete-message-community"
	assert moderated.data["deleted_at"] is not None
	assert owned.data["deleted_at"] is not None


@pytest.mark.asyncio
async def test_other_member_cannot_edit(service, communities_repo):
	communities_repo.add_member(OUTSIDER.id, 10)
	sent = await service.send(MEMBER, 10, "mine")

	with pytest.raises(ForbiddenError) as excinfo:
		await service.update(OUTSIDER, sent.data["id"], "yours")
	assert excinfo.value.detail == "You are not allowed to update the message"


@pytest.mark.asyncio
async def test_deleted_message_is_not_found(service):
	sent = await service.send(MEMBER, 10, "gone")
	await service.delete(MEMBER, sent.data["id"])

	with pytest.raises(NotFoundError):
		await service.delete(MEMBER, sent.data["id"])

"""Membership flows: joining, leaving, removal and join request resolution."""

from __future__ import annotations

import logging

from agora.communities.domain import models, policies, repo as repo_module
from agora.communities.domain.effects import Broadcast, LeaveRoom, SendNotification, ServiceResult, WriteAudit, dump
from agora.communities.domain.exceptions import InvalidStateError, NotFoundError
from agora.communities.domain.rooms import admin_room, community_room
from agora.infra.auth import AuthenticatedUser
from agora.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

RESOLUTIONS = ("accepted", "rejected")


class MembershipService:
	"""Implements the membership state machine for a single actor."""

	def __init__(self, *, repository: repo_module.CommunitiesRepository | None = None) -> None:
		self.repo = repository or repo_module.CommunitiesRepository()

	async def _community(self, community_id: int) -> models.Community:
		community = await self.repo.get_community(community_id)
		if community is None:
			raise NotFoundError("Community not found")
		return community

	async def _grant_context(self, actor_id: int, community: models.Community) -> policies.AuthContext:
		grant = await self.repo.get_admin(community.id, actor_id)
		return policies.AuthContext(actor_id=actor_id, community=community, grant=grant)

	async def join(self, actor: AuthenticatedUser | None, community_id: int) -> ServiceResult:
		actor_id = policies.require_actor(actor)
		community = await self._community(community_id)
		membership = await self.repo.get_membership(actor_id, community.id)

		if membership is None:
			if community.privacy == "public":
				created = await self.repo.create_membership(actor_id, community.id)
				obs_metrics.membership_transition("joined")
				return self._joined(actor_id, community, created, "Added member successfully")
			return await self._request(actor_id, community)

		if membership.is_active:
			raise InvalidStateError("You are already a member in this community")

		# Members who left on their own may come straight back into a public community;
		# anyone removed by an admin has to ask again.
		if membership.removed_by_self and community.privacy == "public":
			reactivated = await self.repo.reactivate_membership(membership.id)
			obs_metrics.membership_transition("rejoined")
			return self._joined(actor_id, community, reactivated, "Welcome back to the community")
		return await self._request(actor_id, community)

	def _joined(
		self,
		actor_id: int,
		community: models.Community,
		membership: models.Membership,
		message: str,
	) -> ServiceResult:
		return ServiceResult(
			message=message,
			data=dump(membership),
			effects=[
				WriteAudit(
					community_id=community.id,
					actor_id=actor_id,
					target_id=actor_id,
					action="join",
				),
				SendNotification(user_id=actor_id, kind="join_community", context={"community": community.name}),
			],
		)

	async def _request(self, actor_id: int, community: models.Community) -> ServiceResult:
		if await self.repo.get_pending_request(actor_id, community.id) is not None:
			raise InvalidStateError("You already have a pending request")
		request = await self.repo.create_join_request(community.id, actor_id)
		obs_metrics.membership_transition("requested")
		payload = dump(request)
		return ServiceResult(
			message="Your join request is pending approval",
			data=payload,
			effects=[Broadcast(room=admin_room(community.id, "users"), event="joinRequest:new", payload=payload)],
		)

	async def leave(self, actor: AuthenticatedUser | None, community_id: int) -> ServiceResult:
		actor_id = policies.require_actor(actor)
		community = await self._community(community_id)
		if community.created_by == actor_id:
			raise InvalidStateError("Community owners cannot leave their community")
		membership = await self.repo.get_membership(actor_id, community.id)
		if membership is None or not membership.is_active:
			raise NotFoundError("Member not found")

		removed = await self.repo.remove_membership(membership.id, removed_by=None)
		obs_metrics.membership_transition("left")
		return ServiceResult(
			message="You left the community successfully",
			data=dump(removed),
			effects=[
				LeaveRoom(room=community_room(community.id)),
				WriteAudit(
					community_id=community.id,
					actor_id=actor_id,
					target_id=actor_id,
					action="leave",
					exclude_origin=True,
				),
			],
		)

	async def remove(self, actor: AuthenticatedUser | None, community_id: int, member_id: int) -> ServiceResult:
		actor_id = policies.require_actor(actor)
		community = await self._community(community_id)
		ctx = await self._grant_context(actor_id, community)
		policies.MANAGE_MEMBERS.enforce(ctx, any_of=True)

		if member_id == actor_id:
			raise InvalidStateError("Admins cannot remove themselves")
		if member_id == community.created_by:
			raise InvalidStateError("The community owner cannot be removed")
		membership = await self.repo.get_membership(member_id, community.id)
		if membership is None or not membership.is_active:
			raise NotFoundError("Not found member in this community")

		removed = await self.repo.remove_membership(membership.id, removed_by=actor_id)
		obs_metrics.membership_transition("removed")
		return ServiceResult(
			message="Remove member successfully",
			data=dump(removed),
			effects=[
				WriteAudit(
					community_id=community.id,
					actor_id=actor_id,
					target_id=member_id,
					action="remove",
				),
			],
		)

	async def resolve_request(
		self,
		actor: AuthenticatedUser | None,
		community_id: int,
		request_id: int,
		action: str,
	) -> ServiceResult:
		actor_id = policies.require_actor(actor)
		if action not in RESOLUTIONS:
			raise InvalidStateError("Invalid action")
		community = await self._community(community_id)
		ctx = await self._grant_context(actor_id, community)
		policies.RESOLVE_REQUEST.enforce(ctx, any_of=True)

		request = await self.repo.get_join_request(request_id)
		if request is None or request.community_id != community.id:
			raise NotFoundError("Request not found")
		if request.status != "pending":
			raise InvalidStateError("This request has already been handled")

		existing = await self.repo.get_membership(request.user_id, community.id)
		if existing is not None and existing.is_active:
			raise InvalidStateError("User is already a member of the community")

		await self.repo.resolve_join_request(
			request,
			action,
			removed_membership_id=existing.id if existing is not None else None,
		)
		resolved = request.model_copy(update={"status": action})
		logger.info(
			"join request resolved",
			extra={"community_id": community.id, "request_id": request.id, "resolution": action},
		)

		if action == "accepted":
			obs_metrics.membership_transition("accepted")
			effects = [
				WriteAudit(
					community_id=community.id,
					actor_id=actor_id,
					target_id=request.user_id,
					action="accept",
				),
				SendNotification(user_id=request.user_id, kind="join_community", context={"community": community.name}),
			]
			message = "Join request accepted"
		else:
			obs_metrics.membership_transition("rejected")
			effects = [
				WriteAudit(
					community_id=community.id,
					actor_id=actor_id,
					target_id=request.user_id,
					action="reject",
					visibility="private",
					broadcast=False,
				),
				SendNotification(user_id=request.user_id, kind="reject_community", context={"community": community.name}),
			]
			message = "Join request rejected"
		return ServiceResult(message=message, data=dump(resolved), effects=effects)

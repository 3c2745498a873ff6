"""Community admin grants."""

from __future__ import annotations

from typing import Iterable, Optional

from agora.communities.domain import models, policies, repo as repo_module
from agora.communities.domain.effects import SendNotification, ServiceResult, dump
from agora.communities.domain.exceptions import InvalidStateError, NotFoundError
from agora.infra.auth import AuthenticatedUser

DEFAULT_PERMISSIONS = ["manage_posts"]


def normalize_permissions(values: Optional[Iterable[object]]) -> list[str]:
	"""Keep known permission names in order, dropping the rest; empty means manage_posts."""
	if not values or isinstance(values, (str, bytes)):
		return list(DEFAULT_PERMISSIONS)
	result: list[str] = []
	for value in values:
		if isinstance(value, str) and value in models.PERMISSIONS and value not in result:
			result.append(value)
	return result or list(DEFAULT_PERMISSIONS)


class AdminsService:
	def __init__(self, *, repository: repo_module.CommunitiesRepository | None = None) -> None:
		self.repo = repository or repo_module.CommunitiesRepository()

	async def _load(self, actor: AuthenticatedUser | None, community_id: int, user_admin: int):
		actor_id = policies.require_actor(actor)
		community = await self.repo.get_community(community_id)
		if community is None:
			raise NotFoundError("Community not found")
		existing = await self.repo.get_admin(community.id, user_admin)
		return actor_id, community, existing

	async def _authorize(self, policy: policies.Policy, actor_id: int, community: models.Community) -> None:
		grant = await self.repo.get_admin(community.id, actor_id)
		policy.enforce(policies.AuthContext(actor_id=actor_id, community=community, grant=grant), any_of=True)

	async def add(
		self,
		actor: AuthenticatedUser | None,
		community_id: int,
		user_admin: int,
		permissions: Optional[Iterable[object]] = None,
	) -> ServiceResult:
		actor_id, community, existing = await self._load(actor, community_id, user_admin)
		if existing is not None:
			raise InvalidStateError("User is already an admin")
		await self._authorize(policies.ADD_ADMIN, actor_id, community)

		admin = await self.repo.create_admin(community.id, user_admin, normalize_permissions(permissions))
		return ServiceResult(
			message="Admin added successfully",
			data=dump(admin),
			effects=[SendNotification(user_id=user_admin, kind="your_admin", context={"community": community.name})],
		)

	async def update(
		self,
		actor: AuthenticatedUser | None,
		community_id: int,
		user_admin: int,
		permissions: Optional[Iterable[object]] = None,
	) -> ServiceResult:
		actor_id, community, existing = await self._load(actor, community_id, user_admin)
		if existing is None:
			raise InvalidStateError("This user is not an admin in this community")
		await self._authorize(policies.UPDATE_ADMIN, actor_id, community)

		admin = await self.repo.update_admin(community.id, user_admin, normalize_permissions(permissions))
		return ServiceResult(
			message="Admin updated successfully",
			data=dump(admin),
			effects=[SendNotification(user_id=user_admin, kind="update_admin", context={"community": community.name})],
		)

	async def revoke(self, actor: AuthenticatedUser | None, community_id: int, user_admin: int) -> ServiceResult:
		actor_id, community, existing = await self._load(actor, community_id, user_admin)
		if existing is None:
			raise InvalidStateError("This user is not an admin in this community")
		await self._authorize(policies.REVOKE_ADMIN, actor_id, community)

		await self.repo.delete_admin(community.id, user_admin)
		return ServiceResult(
			message="Deleted admin successfully",
			data=dump(existing),
			effects=[SendNotification(user_id=user_admin, kind="remove_admin", context={"community": community.name})],
		)

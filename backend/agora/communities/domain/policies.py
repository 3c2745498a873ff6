"""Authorization rules and composable policies for community operations.

A rule is a plain function ``(AuthContext) -> RuleResult``. Anything a rule needs
from storage (community, admin grant, membership, message) is loaded into the
context by the calling service first, so rules never await.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import status

from agora.communities.domain import models
from agora.communities.domain.exceptions import from_status


@dataclass(frozen=True, slots=True)
class RuleResult:
	ok: bool
	error: Optional[str] = None
	code: Optional[int] = None


ALLOW = RuleResult(ok=True)


@dataclass(slots=True)
class AuthContext:
	actor_id: Optional[int]
	community: Optional[models.Community] = None
	grant: Optional[models.CommunityAdmin] = None
	membership: Optional[models.Membership] = None
	# user id owning the resource being touched (message sender, post or comment author)
	owner_id: Optional[int] = None
	target_id: Optional[int] = None
	is_read: bool = False


Rule = Callable[[AuthContext], RuleResult]


def _deny(error: str, code: int) -> RuleResult:
	return RuleResult(ok=False, error=error, code=code)


def is_authenticated(ctx: AuthContext) -> RuleResult:
	if ctx.actor_id:
		return ALLOW
	return _deny("You are not authorized. Please log in first.", status.HTTP_401_UNAUTHORIZED)


def is_owner(ctx: AuthContext) -> RuleResult:
	if ctx.community is not None and ctx.actor_id is not None and ctx.community.created_by == ctx.actor_id:
		return ALLOW
	return _deny("Only the community owner can do this", status.HTTP_403_FORBIDDEN)


def can_manage_users(ctx: AuthContext) -> RuleResult:
	grant = ctx.grant
	if grant is not None and grant.user_id == ctx.actor_id and grant.has("manage_users"):
		return ALLOW
	return _deny("You do not have permission to manage users", status.HTTP_403_FORBIDDEN)


def has_moderation_grant(ctx: AuthContext) -> RuleResult:
	grant = ctx.grant
	if grant is not None and grant.user_id == ctx.actor_id:
		if any(grant.has(permission) for permission in models.PERMISSIONS):
			return ALLOW
	return _deny("You do not have moderation rights in this community", status.HTTP_403_FORBIDDEN)


def is_active_member(ctx: AuthContext) -> RuleResult:
	membership = ctx.membership
	if membership is not None and membership.user_id == ctx.actor_id and membership.is_active:
		return ALLOW
	return _deny("You are not a member in this community", status.HTTP_403_FORBIDDEN)


def is_sender(ctx: AuthContext) -> RuleResult:
	if ctx.owner_id is not None and ctx.owner_id == ctx.actor_id:
		return ALLOW
	return _deny("You are not the sender of this message", status.HTTP_403_FORBIDDEN)


def is_author(ctx: AuthContext) -> RuleResult:
	if ctx.owner_id is not None and ctx.owner_id == ctx.actor_id:
		return ALLOW
	return _deny("You are not the author of this content", status.HTTP_403_FORBIDDEN)


def message_not_yet_read(ctx: AuthContext) -> RuleResult:
	if not ctx.is_read:
		return ALLOW
	return _deny("You cannot edit this message because it has already been read", status.HTTP_403_FORBIDDEN)


def is_not_self(ctx: AuthContext) -> RuleResult:
	if ctx.target_id is None or ctx.target_id != ctx.actor_id:
		return ALLOW
	return _deny("Cannot send message to yourself", status.HTTP_400_BAD_REQUEST)


class Policy:
	"""An ordered group of rules evaluated with AND or OR semantics."""

	def __init__(self, *rules: Rule, denial: str = "Forbidden", code: int = status.HTTP_403_FORBIDDEN) -> None:
		self.rules = rules
		self.denial = _deny(denial, code)

	def check(self, ctx: AuthContext) -> RuleResult:
		"""All rules must pass; the first failing rule's result is returned."""
		for rule in self.rules:
			result = rule(ctx)
			if not result.ok:
				return result
		return ALLOW

	def check_any(self, ctx: AuthContext) -> RuleResult:
		"""At least one rule must pass; otherwise the policy's own denial is returned."""
		for rule in self.rules:
			if rule(ctx).ok:
				return ALLOW
		return self.denial

	def enforce(self, ctx: AuthContext, *, any_of: bool = False) -> None:
		result = self.check_any(ctx) if any_of else self.check(ctx)
		if not result.ok:
			raise from_status(result.code or status.HTTP_403_FORBIDDEN, result.error or self.denial.error or "Forbidden")


AUTHENTICATED = Policy(is_authenticated)

MANAGE_MEMBERS = Policy(is_owner, can_manage_users, denial="You are not authorized to manage members of this community")
RESOLVE_REQUEST = Policy(is_owner, can_manage_users, denial="You are not authorized to handle join requests")

ADD_ADMIN = Policy(is_owner, can_manage_users, denial="You are not authorized to add admins")
UPDATE_ADMIN = Policy(is_owner, can_manage_users, denial="You are not authorized to update admins")
REVOKE_ADMIN = Policy(is_owner, can_manage_users, denial="You are not authorized to delete admins")

SEND_PRIVATE_MESSAGE = Policy(is_not_self)
UPDATE_PRIVATE_MESSAGE = Policy(is_sender, message_not_yet_read)
DELETE_PRIVATE_MESSAGE = Policy(is_sender)

SEND_COMMUNITY_MESSAGE = Policy(is_owner, is_active_member, denial="You are not a member in this community")
UPDATE_COMMUNITY_MESSAGE = Policy(
	is_sender,
	is_owner,
	has_moderation_grant,
	denial="You are not allowed to update the message",
)
DELETE_COMMUNITY_MESSAGE = Policy(
	is_sender,
	is_owner,
	has_moderation_grant,
	denial="You are not allowed to delete the message",
)

UPDATE_POST = Policy(is_author, denial="You are not authorized to update this post")
DELETE_POST = Policy(is_author, denial="You are not authorized to delete this post")
ANNOUNCE_POST = Policy(is_author, denial="You can only announce your own posts")
UPDATE_COMMENT = Policy(is_author, denial="You are not authorized to update this comment")
DELETE_COMMENT = Policy(is_author, denial="You are not authorized to delete this comment")


def require_actor(actor) -> int:
	"""Return the verified actor id or raise UnauthenticatedError."""
	actor_id = getattr(actor, "id", None)
	AUTHENTICATED.enforce(AuthContext(actor_id=actor_id))
	return int(actor_id)

"""Pydantic schemas for Socket.IO event payloads."""

from __future__ import annotations

from typing import Any, List, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, ValidationError as PydanticValidationError, model_validator

from agora.communities.domain.exceptions import ValidationError
from agora.settings import settings

Area = Literal["users", "posts", "settings"]
Resolution = Literal["accepted", "rejected"]
ReactionKind = Literal["like", "love", "haha", "wow", "sad", "angry"]

P = TypeVar("P", bound=BaseModel)


class EventPayload(BaseModel):
	model_config = ConfigDict(populate_by_name=True, extra="ignore")


def _scalar_as(field: str, value: Any) -> Any:
	# Some clients send a bare id instead of an object
	if isinstance(value, (int, str)) and not isinstance(value, bool):
		return {field: value}
	return value


class CommunityRef(EventPayload):
	community_id: PositiveInt = Field(alias="communityId")

	@model_validator(mode="before")
	@classmethod
	def _accept_bare_id(cls, value: Any) -> Any:
		return _scalar_as("communityId", value)


class RegisterPayload(EventPayload):
	user_id: PositiveInt = Field(alias="userId")

	@model_validator(mode="before")
	@classmethod
	def _accept_bare_id(cls, value: Any) -> Any:
		return _scalar_as("userId", value)


class AdminRoomPayload(EventPayload):
	community_id: PositiveInt = Field(alias="communityId")
	area: Area


class RemoveMemberPayload(EventPayload):
	community_id: PositiveInt = Field(alias="communityId")
	member_id: PositiveInt = Field(alias="memberId")


class HandleRequestPayload(EventPayload):
	community_id: PositiveInt = Field(alias="communityId")
	request_id: PositiveInt = Field(alias="requestId")
	action: Resolution


class AdminPayload(EventPayload):
	community_id: PositiveInt = Field(alias="communityId")
	user_admin: PositiveInt = Field(alias="userAdmin")
	# Unknown permission names are dropped by the service rather than rejected here
	permissions: Optional[List[str]] = None


class SendCommunityMessagePayload(EventPayload):
	community_id: PositiveInt = Field(alias="communityId")
	content: str = Field(min_length=1, max_length=settings.message_max_length)


class SendPrivateMessagePayload(EventPayload):
	receiver_id: PositiveInt = Field(alias="receiverId")
	content: str = Field(min_length=1, max_length=settings.message_max_length)


class UpdateMessagePayload(EventPayload):
	message_id: PositiveInt = Field(alias="messageId")
	content: str = Field(min_length=1, max_length=settings.message_max_length)


class MessageRef(EventPayload):
	message_id: PositiveInt = Field(alias="messageId")


class PostSnapshot(BaseModel):
	id: PositiveInt

	model_config = ConfigDict(extra="allow")


class NewPostPayload(EventPayload):
	community_id: PositiveInt = Field(alias="communityId")
	post: PostSnapshot
	media: List[dict] = Field(default_factory=list)
	mentions: List[dict] = Field(default_factory=list)


class UpdatePostPayload(EventPayload):
	post_id: PositiveInt = Field(alias="postId")
	content: Optional[str] = Field(default=None, max_length=settings.post_max_length)


class PostRef(EventPayload):
	post_id: PositiveInt = Field(alias="postId")


class NewCommentPayload(EventPayload):
	post_id: PositiveInt = Field(alias="postId")
	content: str = Field(min_length=1, max_length=settings.comment_max_length)


class UpdateCommentPayload(EventPayload):
	comment_id: PositiveInt = Field(alias="commentId")
	content: str = Field(min_length=1, max_length=settings.comment_max_length)


class CommentRef(EventPayload):
	comment_id: PositiveInt = Field(alias="commentId")


class AddReactionPayload(EventPayload):
	post_id: PositiveInt = Field(alias="postId")
	reaction: ReactionKind = "like"


class UpdateReactionPayload(EventPayload):
	like_id: PositiveInt = Field(alias="likeId")
	reaction: ReactionKind


class ReactionRef(EventPayload):
	like_id: PositiveInt = Field(alias="likeId")


def parse(model: Type[P], data: Any) -> P:
	"""Validate an event payload, converting pydantic errors into one message per field."""
	try:
		return model.model_validate(data)
	except PydanticValidationError as exc:
		errors = [
			{"field": ".".join(str(part) for part in error["loc"]) or "payload", "message": error["msg"]}
			for error in exc.errors()
		]
		raise ValidationError(errors) from exc

"""Domain models for community entities."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

Privacy = Literal["public", "private"]
RequestStatus = Literal["pending", "accepted", "rejected"]
AuditAction = Literal["join", "leave", "remove", "accept", "reject"]
AuditVisibility = Literal["public", "private"]
PostType = Literal["text", "image", "video", "mixed"]

PERMISSIONS = ("manage_users", "edit_settings", "manage_posts")
REACTIONS = ("like", "love", "haha", "wow", "sad", "angry")
ADMIN_AREAS = ("users", "posts", "settings")


class User(BaseModel):
	id: int
	name: Optional[str] = None

	model_config = ConfigDict(from_attributes=True, extra="ignore")


class Community(BaseModel):
	"""Represents a community."""

	id: int
	name: str
	privacy: Privacy = "public"
	created_by: Optional[int] = None

	model_config = ConfigDict(from_attributes=True, extra="ignore")


class Membership(BaseModel):
	"""Represents a membership row; removed rows are kept as history."""

	id: int
	user_id: int
	community_id: int
	created_at: Optional[datetime] = None
	removed_at: Optional[datetime] = None
	removed_by: Optional[int] = None

	model_config = ConfigDict(from_attributes=True, extra="ignore")

	@property
	def is_active(self) -> bool:
		return self.removed_at is None

	@property
	def removed_by_self(self) -> bool:
		return self.removed_at is not None and self.removed_by is None


class JoinRequest(BaseModel):
	id: int
	community_id: int
	user_id: int
	status: RequestStatus = "pending"
	created_at: Optional[datetime] = None

	model_config = ConfigDict(from_attributes=True, extra="ignore")


class CommunityAdmin(BaseModel):
	community_id: int
	user_id: int
	permissions: list[str] = ["manage_posts"]
	created_at: Optional[datetime] = None

	model_config = ConfigDict(from_attributes=True, extra="ignore")

	def has(self, permission: str) -> bool:
		return permission in self.permissions


class AuditLogEntry(BaseModel):
	id: int
	community_id: int
	actor_id: Optional[int] = None
	target_id: Optional[int] = None
	action: AuditAction
	visibility: AuditVisibility = "public"
	created_at: Optional[datetime] = None

	model_config = ConfigDict(from_attributes=True, extra="ignore")


class PrivateMessage(BaseModel):
	id: int
	sender_id: int
	receiver_id: int
	content: str
	is_read: bool = False
	is_edited: bool = False
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None
	deleted_at: Optional[datetime] = None

	model_config = ConfigDict(from_attributes=True, extra="ignore")


class CommunityMessage(BaseModel):
	id: int
	sender_id: int
	community_id: int
	content: str
	is_edited: bool = False
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None
	deleted_at: Optional[datetime] = None

	model_config = ConfigDict(from_attributes=True, extra="ignore")


class Notification(BaseModel):
	id: int
	user_id: int
	message: str
	type: str
	is_read: bool = False
	created_at: Optional[datetime] = None

	model_config = ConfigDict(from_attributes=True, extra="ignore")


class Post(BaseModel):
	"""Represents a community post."""

	id: int
	community_id: int
	user_id: int
	content: Optional[str] = None
	type: PostType = "text"
	created_at: Optional[datetime] = None
	deleted_at: Optional[datetime] = None

	model_config = ConfigDict(from_attributes=True, extra="ignore")


class Comment(BaseModel):
	id: int
	post_id: int
	user_id: int
	content: str
	created_at: Optional[datetime] = None

	model_config = ConfigDict(from_attributes=True, extra="ignore")


class Reaction(BaseModel):
	id: int
	post_id: int
	user_id: int
	reaction: str = "like"
	created_at: Optional[datetime] = None

	model_config = ConfigDict(from_attributes=True, extra="ignore")

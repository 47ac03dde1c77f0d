"""
Models — Typed views over the raw atSpoke API records.

Each atSpoke endpoint returns a {"results": [...]} body of loosely shaped
JSON objects. These dataclasses give every record an explicit shape with
optional fields spelled out, while keeping the untouched API object in `raw`
so that it can be attached to the graph entity as raw data.

Fallback rules (e.g. display name -> email) are not applied here; they belong
to the entity mapper.

Team membership:
    The teams endpoint embeds an "agentList" of membership records, each
    wrapping a full user object:

        {"id": "t1", "name": "IT", "agentList": [
            {"status": "ACTIVE", "teamRole": "AGENT", "user": {"id": "u1", ...}}
        ]}

    AtSpokeTeam.from_api() flattens that list into `users`. The list is
    rebuilt from agentList every time, so normalizing the same record twice
    yields the same users.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class AtSpokeUser:
    id: str
    email: str
    display_name: Optional[str] = None
    is_email_verified: Optional[bool] = None
    is_profile_completed: Optional[bool] = None
    status: Optional[str] = None
    memberships: List[str] = field(default_factory=list)
    start_date: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "AtSpokeUser":
        return cls(
            id=data["id"],
            email=data.get("email", ""),
            display_name=data.get("displayName") or None,
            is_email_verified=data.get("isEmailVerified"),
            is_profile_completed=data.get("isProfileCompleted"),
            status=data.get("status"),
            memberships=list(data.get("memberships") or []),
            start_date=data.get("startDate"),
            raw=data,
        )


@dataclass
class AtSpokeAgent:
    """One entry of a team's agentList."""

    user: AtSpokeUser
    status: Optional[str] = None
    team_role: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "AtSpokeAgent":
        return cls(
            user=AtSpokeUser.from_api(data["user"]),
            status=data.get("status"),
            team_role=data.get("teamRole"),
        )


@dataclass
class AtSpokeTeam:
    id: str
    name: str
    slug: Optional[str] = None
    description: Optional[str] = None
    owner: Optional[str] = None
    org: Optional[str] = None
    email: Optional[str] = None
    permalink: Optional[str] = None
    status: Optional[str] = None
    agents: List[AtSpokeAgent] = field(default_factory=list)
    users: List[AtSpokeUser] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "AtSpokeTeam":
        agents = [
            AtSpokeAgent.from_api(agent)
            for agent in data.get("agentList") or []
            if agent.get("user")
        ]
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            slug=data.get("slug"),
            description=data.get("description"),
            owner=data.get("owner"),
            org=data.get("org"),
            email=data.get("email"),
            permalink=data.get("permalink"),
            status=data.get("status"),
            agents=agents,
            users=[agent.user for agent in agents],
            raw=data,
        )


@dataclass
class AtSpokeWebhook:
    id: str
    enabled: bool = False
    topics: List[str] = field(default_factory=list)
    url: Optional[str] = None
    client: Optional[str] = None
    description: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "AtSpokeWebhook":
        return cls(
            id=data["id"],
            enabled=bool(data.get("enabled", False)),
            topics=list(data.get("topics") or []),
            url=data.get("url"),
            client=data.get("client"),
            description=data.get("description"),
            raw=data,
        )


@dataclass
class AtSpokeRequest:
    id: str
    subject: Optional[str] = None
    requester: Optional[str] = None
    owner: Optional[str] = None
    status: Optional[str] = None
    privacy_level: Optional[str] = None
    team: Optional[str] = None
    org: Optional[str] = None
    permalink: Optional[str] = None
    request_type: Optional[str] = None
    is_auto_resolve: Optional[bool] = None
    is_filed: Optional[bool] = None
    email: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "AtSpokeRequest":
        return cls(
            id=data["id"],
            subject=data.get("subject"),
            requester=data.get("requester"),
            owner=data.get("owner"),
            status=data.get("status"),
            privacy_level=data.get("privacyLevel"),
            team=data.get("team"),
            org=data.get("org"),
            permalink=data.get("permalink"),
            request_type=data.get("requestType"),
            is_auto_resolve=data.get("isAutoResolve"),
            is_filed=data.get("isFiled"),
            email=data.get("email"),
            raw=data,
        )


@dataclass
class AtSpokeRequestType:
    id: str
    title: Optional[str] = None
    status: Optional[str] = None
    icon: Optional[str] = None
    description: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "AtSpokeRequestType":
        return cls(
            id=data["id"],
            title=data.get("title"),
            status=data.get("status"),
            icon=data.get("icon"),
            description=data.get("description"),
            raw=data,
        )

"""Strongly typed identifiers for schedule sharing entities.

Using NewType for strong typing prevents mixing up user ids, invitation
ids, term keys and schedule version ids, which are all plain strings on
the wire.
"""

from typing import NewType

# Opaque subject identifier issued by the identity provider
UserId = NewType("UserId", str)

# Document id of an invitation in the friend-invites collection
InvitationId = NewType("InvitationId", str)

# Scheduling period key, e.g. "202408" for Fall 2024
Term = NewType("Term", str)

# Key of a schedule version inside a term
VersionId = NewType("VersionId", str)

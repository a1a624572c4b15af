"""Sample team, employee cards and offline replies for the chat panel."""

from .reference_data import (  # noqa: F401
    CannedReply,
    SampleEmployee,
    SampleTeam,
    build_employee_card,
    canned_reply,
    default_sample_team,
    find_employee_keys,
)

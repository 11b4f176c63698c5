from .db import (
    STORE_ERRORS,
    get_engine,
    get_session,
    create_all,
    dispose_engine,
    fetch_profiles,
    get_profile,
    fetch_primary_contact,
    insert_check_in,
    get_check_in,
    claim_reminder,
    claim_escalation,
    complete_latest_check_in,
    fetch_open_check_ins,
    insert_response,
)  # noqa: F401

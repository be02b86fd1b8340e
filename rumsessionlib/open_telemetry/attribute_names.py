class RumSessionAttributeNames:
    # Session attributes
    SESSION_ID: str = "session.id"
    PREVIOUS_SESSION_ID: str = "session.previous_id"


class RumSessionSpanNames:
    SESSION_CHANGE: str = "session.change"

import uuid6


def new_id() -> str:
    # time-ordered so primary keys sort by creation
    return str(uuid6.uuid7())

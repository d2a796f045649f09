from pydantic import BaseModel, ConfigDict


class ProfileKeys(BaseModel):
    """Namespaced storage keys for one profile."""
    model_config = ConfigDict(frozen=True)

    record: str
    moods: str
    chat: str
    journal: str


class SessionContext(BaseModel):
    """
    The active profile, passed explicitly into every profile-scoped operation
    so several profiles can be exercised side by side without ambient state.
    """
    model_config = ConfigDict(frozen=True)

    owner_id: str
    keys: ProfileKeys

from pydantic import BaseModel


class SettingsResponse(BaseModel):
    settings: dict[str, str]


class SettingsUpdateRequest(BaseModel):
    settings: dict[str, str]


class SettingsSeedResponse(BaseModel):
    message: str
    inserted: int

from pydantic import BaseModel, ConfigDict, Field


class InstallRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    remote_id: int = Field(alias="remoteId", gt=0)


class ToggleRequest(BaseModel):
    enabled: bool

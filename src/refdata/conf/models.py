# refdata/conf/models.py

from pydantic import BaseModel, ConfigDict, Field


class RefDataSettings(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    LOCATION: str = "res_db"
    PACKAGES: tuple[str, ...] = Field(default_factory=tuple)
    LOADER: str = "refdata.loaders.json_file:JsonLoader"
    LISTENERS: tuple[str, ...] = Field(default_factory=tuple)
    REFRESH_EVENT_RELOAD: bool = False

"""
Document Models
Read-only snapshot of a host document plus the page builder node tree.
"""
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional, Dict, Any

class DocumentSnapshot(BaseModel):
    document_id: str
    document_type: str = "post"
    title: str = ""
    raw_content: str = ""
    # Raw page builder tree, as the builder stores it (list of top-level nodes)
    builder_data: Optional[List[Any]] = None

    @field_validator("document_id", mode="before")
    @classmethod
    def _id_as_string(cls, value):
        return str(value) if value is not None else value

class BuilderNode(BaseModel):
    """
    One node of a page builder tree.
    Only `children`, `settings` and the template reference matter for extraction;
    every other key the builder stores is ignored.
    """
    id: Optional[str] = None
    el_type: Optional[str] = Field(default=None, alias="elType")
    widget_type: Optional[str] = Field(default=None, alias="widgetType")
    settings: Dict[str, Any] = {}
    template_id: Optional[str] = Field(default=None, alias="templateID")
    children: List["BuilderNode"] = []

    class Config:
        populate_by_name = True
        extra = "ignore"

    @field_validator("id", "template_id", mode="before")
    @classmethod
    def _scalar_as_string(cls, value):
        if value is None or value == "":
            return None
        if isinstance(value, (str, int)):
            return str(value)
        raise ValueError("expected a scalar identifier")

    @field_validator("settings", mode="before")
    @classmethod
    def _empty_settings(cls, value):
        # Builders serialize empty settings as [] rather than {}
        if value is None or value == []:
            return {}
        return value

    @property
    def referenced_template(self) -> Optional[str]:
        if self.template_id:
            return self.template_id
        ref = self.settings.get("template_id")
        if isinstance(ref, (str, int)) and str(ref):
            return str(ref)
        return None

BuilderNode.model_rebuild()

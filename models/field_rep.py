from pydantic import BaseModel, ConfigDict


class FieldRep(BaseModel):
    """
    A field representative holding stock on the road.
    Reference data only; loaded from the reps CSV and never edited here.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    phone: str = ""
    location: str = ""

    @property
    def display_name(self) -> str:
        return f"{self.name} - {self.location}" if self.location else self.name

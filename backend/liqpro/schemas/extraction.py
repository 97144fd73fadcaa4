# backend/liqpro/schemas/extraction.py
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..services.filing_selector import InsolvencyMatchMode

MAX_COMPANY_NUMBER_LEN = 16


class ExtractionRequest(BaseModel):
    """
    Body of POST /extract. Every field is optional at the schema level so the
    route can answer missing inputs with a plain 400 instead of a 422.
    """

    company_number: str | None = Field(
        default=None,
        validation_alias=AliasChoices("companyNumber", "company_number"),
    )
    registry_credential: str | None = Field(
        default=None,
        validation_alias=AliasChoices("registryCredential", "chApiKey", "registry_credential"),
        repr=False,
    )
    match_mode: InsolvencyMatchMode | None = Field(
        default=None,
        validation_alias=AliasChoices("matchMode", "match_mode"),
    )

    @field_validator("company_number", "registry_credential", "match_mode", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if v is None:
            return None
        if isinstance(v, str):
            stripped = v.strip()
            return stripped or None
        return v

    @field_validator("company_number")
    @classmethod
    def validate_company_number(cls, v: str | None) -> str | None:
        if v is None:
            return None
        if len(v) > MAX_COMPANY_NUMBER_LEN or not v.isalnum():
            raise ValueError("companyNumber must be a short alphanumeric registry number")
        return v.upper()


class AggregatedRow(BaseModel):
    """
    One extracted company. Optional fields are always present as "".
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    company_number: str
    company_name: str = ""
    director_name: str = ""
    ethnicity: str = ""
    total_assets: str = ""
    odla: str = ""
    total_deficiency: str = ""
    bbl_cbils: str = ""
    hmrc_preferential: str = ""
    hmrc_unsecured: str = ""
    trade_creditors: str = ""
    accountant_firm_name: str = ""
    accountant_url: str = ""

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class DocumentOut(BaseModel):
    success: bool = True
    base64: str


class ErrorOut(BaseModel):
    error: str


class ResultsOut(BaseModel):
    count: int
    results: list[dict]

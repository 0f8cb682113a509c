from pydantic import BaseModel, Field


class LetterheadSettings(BaseModel):
    set_as_default: bool = True
    header_height: float = 4.5
    case_info_height: float = 3.0
    signature_height: float = 3.4
    footer_height: float = 3.4


class DesignSettings(BaseModel):
    font_family: str = "Arial"
    font_size: int = 12
    spacing: float = 1
    indent_nested: bool = False
    bold_values: bool = False
    red_abnormal: bool = False
    bold_abnormal: bool = False


class GeneralSettings(BaseModel):
    use_hl_markers: bool = True
    category_new_page: bool = False
    use_nabl_format: bool = False
    capitalize_tests: bool = False
    category_order: list[str] = Field(default_factory=list)


class ShowHideSettings(BaseModel):
    show_page_number: bool = True
    show_tat_time: bool = False


class PrintSettings(BaseModel):
    with_letterhead: bool = True
    letterhead: LetterheadSettings = Field(default_factory=LetterheadSettings)
    design: DesignSettings = Field(default_factory=DesignSettings)
    general: GeneralSettings = Field(default_factory=GeneralSettings)
    show_hide: ShowHideSettings = Field(default_factory=ShowHideSettings)

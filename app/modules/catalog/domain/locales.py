"""Locale identity: language, script and region codes.

Defines the known code sets, parsing and validation, canonical locale
identifier formatting, locale matching, and the default-locale policy used
by every catalog backend when reading stored records.

Key rules:
  - A code instance is always a member of its enum; unknown strings raise UnknownCode
  - An absent language falls back to the default language (never raises)
  - An unknown stored value falls back leniently (default language, no
    script, no region) or raises, depending on the caller's ``strict`` flag
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from infrastructure.configuration import get_settings
from infrastructure.logging import get_module_logger
from modules.catalog.domain.errors import UnknownCode

logger = get_module_logger()


class LanguageCode(str, Enum):
    """ISO 639-1 language codes (lower case)."""

    AA = "aa"
    AB = "ab"
    AE = "ae"
    AF = "af"
    AK = "ak"
    AM = "am"
    AN = "an"
    AR = "ar"
    AS = "as"
    AV = "av"
    AY = "ay"
    AZ = "az"
    BA = "ba"
    BE = "be"
    BG = "bg"
    BI = "bi"
    BM = "bm"
    BN = "bn"
    BO = "bo"
    BR = "br"
    BS = "bs"
    CA = "ca"
    CE = "ce"
    CH = "ch"
    CO = "co"
    CR = "cr"
    CS = "cs"
    CU = "cu"
    CV = "cv"
    CY = "cy"
    DA = "da"
    DE = "de"
    DV = "dv"
    DZ = "dz"
    EE = "ee"
    EL = "el"
    EN = "en"
    EO = "eo"
    ES = "es"
    ET = "et"
    EU = "eu"
    FA = "fa"
    FF = "ff"
    FI = "fi"
    FJ = "fj"
    FO = "fo"
    FR = "fr"
    FY = "fy"
    GA = "ga"
    GD = "gd"
    GL = "gl"
    GN = "gn"
    GU = "gu"
    GV = "gv"
    HA = "ha"
    HE = "he"
    HI = "hi"
    HO = "ho"
    HR = "hr"
    HT = "ht"
    HU = "hu"
    HY = "hy"
    HZ = "hz"
    IA = "ia"
    ID = "id"
    IE = "ie"
    IG = "ig"
    II = "ii"
    IK = "ik"
    IO = "io"
    IS = "is"
    IT = "it"
    IU = "iu"
    JA = "ja"
    JV = "jv"
    KA = "ka"
    KG = "kg"
    KI = "ki"
    KJ = "kj"
    KK = "kk"
    KL = "kl"
    KM = "km"
    KN = "kn"
    KO = "ko"
    KR = "kr"
    KS = "ks"
    KU = "ku"
    KV = "kv"
    KW = "kw"
    KY = "ky"
    LA = "la"
    LB = "lb"
    LG = "lg"
    LI = "li"
    LN = "ln"
    LO = "lo"
    LT = "lt"
    LU = "lu"
    LV = "lv"
    MG = "mg"
    MH = "mh"
    MI = "mi"
    MK = "mk"
    ML = "ml"
    MN = "mn"
    MR = "mr"
    MS = "ms"
    MT = "mt"
    MY = "my"
    NA = "na"
    NB = "nb"
    ND = "nd"
    NE = "ne"
    NG = "ng"
    NL = "nl"
    NN = "nn"
    NO = "no"
    NR = "nr"
    NV = "nv"
    NY = "ny"
    OC = "oc"
    OJ = "oj"
    OM = "om"
    OR = "or"
    OS = "os"
    PA = "pa"
    PI = "pi"
    PL = "pl"
    PS = "ps"
    PT = "pt"
    QU = "qu"
    RM = "rm"
    RN = "rn"
    RO = "ro"
    RU = "ru"
    RW = "rw"
    SA = "sa"
    SC = "sc"
    SD = "sd"
    SE = "se"
    SG = "sg"
    SI = "si"
    SK = "sk"
    SL = "sl"
    SM = "sm"
    SN = "sn"
    SO = "so"
    SQ = "sq"
    SR = "sr"
    SS = "ss"
    ST = "st"
    SU = "su"
    SV = "sv"
    SW = "sw"
    TA = "ta"
    TE = "te"
    TG = "tg"
    TH = "th"
    TI = "ti"
    TK = "tk"
    TL = "tl"
    TN = "tn"
    TO = "to"
    TR = "tr"
    TS = "ts"
    TT = "tt"
    TW = "tw"
    TY = "ty"
    UG = "ug"
    UK = "uk"
    UR = "ur"
    UZ = "uz"
    VE = "ve"
    VI = "vi"
    VO = "vo"
    WA = "wa"
    WO = "wo"
    XH = "xh"
    YI = "yi"
    YO = "yo"
    ZA = "za"
    ZH = "zh"
    ZU = "zu"


class ScriptCode(str, Enum):
    """ISO 15924 script codes (title case)."""

    ADLAM = "Adlm"
    ARABIC = "Arab"
    ARABIC_NASTALIQ = "Aran"
    ARMENIAN = "Armn"
    BANGLA = "Beng"
    CHEROKEE = "Cher"
    CYRILLIC = "Cyrl"
    DEVANAGARI = "Deva"
    ETHIOPIC = "Ethi"
    GEORGIAN = "Geor"
    GREEK = "Grek"
    GUJARATI = "Gujr"
    GURMUKHI = "Guru"
    HANIFI_ROHINGYA = "Rohg"
    HAN_SIMPLIFIED = "Hans"
    HAN_TRADITIONAL = "Hant"
    HEBREW = "Hebr"
    HIRAGANA = "Hira"
    JAPANESE = "Jpan"
    KANNADA = "Knda"
    KATAKANA = "Kana"
    KHMER = "Khmr"
    KOREAN = "Kore"
    LAO = "Laoo"
    LATIN = "Latn"
    MALAYALAM = "Mlym"
    MEITEI_MAYEK = "Mtei"
    MYANMAR = "Mymr"
    ODIA = "Orya"
    OL_CHIKI = "Olck"
    SINHALA = "Sinh"
    SYRIAC = "Syrc"
    TAMIL = "Taml"
    TELUGU = "Telu"
    THAANA = "Thaa"
    THAI = "Thai"
    TIBETAN = "Tibt"


class RegionCode(str, Enum):
    """ISO 3166-1 alpha-2 region codes (upper case), plus UN M.49 Latin America."""

    AD = "AD"
    AE = "AE"
    AF = "AF"
    AG = "AG"
    AI = "AI"
    AL = "AL"
    AM = "AM"
    AO = "AO"
    AQ = "AQ"
    AR = "AR"
    AS = "AS"
    AT = "AT"
    AU = "AU"
    AW = "AW"
    AX = "AX"
    AZ = "AZ"
    BA = "BA"
    BB = "BB"
    BD = "BD"
    BE = "BE"
    BF = "BF"
    BG = "BG"
    BH = "BH"
    BI = "BI"
    BJ = "BJ"
    BL = "BL"
    BM = "BM"
    BN = "BN"
    BO = "BO"
    BQ = "BQ"
    BR = "BR"
    BS = "BS"
    BT = "BT"
    BV = "BV"
    BW = "BW"
    BY = "BY"
    BZ = "BZ"
    CA = "CA"
    CC = "CC"
    CD = "CD"
    CF = "CF"
    CG = "CG"
    CH = "CH"
    CI = "CI"
    CK = "CK"
    CL = "CL"
    CM = "CM"
    CN = "CN"
    CO = "CO"
    CR = "CR"
    CU = "CU"
    CV = "CV"
    CW = "CW"
    CX = "CX"
    CY = "CY"
    CZ = "CZ"
    DE = "DE"
    DJ = "DJ"
    DK = "DK"
    DM = "DM"
    DO = "DO"
    DZ = "DZ"
    EC = "EC"
    EE = "EE"
    EG = "EG"
    EH = "EH"
    ER = "ER"
    ES = "ES"
    ET = "ET"
    FI = "FI"
    FJ = "FJ"
    FK = "FK"
    FM = "FM"
    FO = "FO"
    FR = "FR"
    GA = "GA"
    GB = "GB"
    GD = "GD"
    GE = "GE"
    GF = "GF"
    GG = "GG"
    GH = "GH"
    GI = "GI"
    GL = "GL"
    GM = "GM"
    GN = "GN"
    GP = "GP"
    GQ = "GQ"
    GR = "GR"
    GS = "GS"
    GT = "GT"
    GU = "GU"
    GW = "GW"
    GY = "GY"
    HK = "HK"
    HM = "HM"
    HN = "HN"
    HR = "HR"
    HT = "HT"
    HU = "HU"
    ID = "ID"
    IE = "IE"
    IL = "IL"
    IM = "IM"
    IN = "IN"
    IO = "IO"
    IQ = "IQ"
    IR = "IR"
    IS = "IS"
    IT = "IT"
    JE = "JE"
    JM = "JM"
    JO = "JO"
    JP = "JP"
    KE = "KE"
    KG = "KG"
    KH = "KH"
    KI = "KI"
    KM = "KM"
    KN = "KN"
    KP = "KP"
    KR = "KR"
    KW = "KW"
    KY = "KY"
    KZ = "KZ"
    LA = "LA"
    LB = "LB"
    LC = "LC"
    LI = "LI"
    LK = "LK"
    LR = "LR"
    LS = "LS"
    LT = "LT"
    LU = "LU"
    LV = "LV"
    LY = "LY"
    MA = "MA"
    MC = "MC"
    MD = "MD"
    ME = "ME"
    MF = "MF"
    MG = "MG"
    MH = "MH"
    MK = "MK"
    ML = "ML"
    MM = "MM"
    MN = "MN"
    MO = "MO"
    MP = "MP"
    MQ = "MQ"
    MR = "MR"
    MS = "MS"
    MT = "MT"
    MU = "MU"
    MV = "MV"
    MW = "MW"
    MX = "MX"
    MY = "MY"
    MZ = "MZ"
    NA = "NA"
    NC = "NC"
    NE = "NE"
    NF = "NF"
    NG = "NG"
    NI = "NI"
    NL = "NL"
    NO = "NO"
    NP = "NP"
    NR = "NR"
    NU = "NU"
    NZ = "NZ"
    OM = "OM"
    PA = "PA"
    PE = "PE"
    PF = "PF"
    PG = "PG"
    PH = "PH"
    PK = "PK"
    PL = "PL"
    PM = "PM"
    PN = "PN"
    PR = "PR"
    PS = "PS"
    PT = "PT"
    PW = "PW"
    PY = "PY"
    QA = "QA"
    RE = "RE"
    RO = "RO"
    RS = "RS"
    RU = "RU"
    RW = "RW"
    SA = "SA"
    SB = "SB"
    SC = "SC"
    SD = "SD"
    SE = "SE"
    SG = "SG"
    SH = "SH"
    SI = "SI"
    SJ = "SJ"
    SK = "SK"
    SL = "SL"
    SM = "SM"
    SN = "SN"
    SO = "SO"
    SR = "SR"
    SS = "SS"
    ST = "ST"
    SV = "SV"
    SX = "SX"
    SY = "SY"
    SZ = "SZ"
    TC = "TC"
    TD = "TD"
    TF = "TF"
    TG = "TG"
    TH = "TH"
    TJ = "TJ"
    TK = "TK"
    TL = "TL"
    TM = "TM"
    TN = "TN"
    TO = "TO"
    TR = "TR"
    TT = "TT"
    TV = "TV"
    TW = "TW"
    TZ = "TZ"
    UA = "UA"
    UG = "UG"
    UM = "UM"
    US = "US"
    UY = "UY"
    UZ = "UZ"
    VA = "VA"
    VC = "VC"
    VE = "VE"
    VG = "VG"
    VI = "VI"
    VN = "VN"
    VU = "VU"
    WF = "WF"
    WS = "WS"
    YE = "YE"
    YT = "YT"
    ZA = "ZA"
    ZM = "ZM"
    ZW = "ZW"
    LATIN_AMERICA = "419"


@dataclass(frozen=True)
class LocaleTuple:
    """A parsed locale: mandatory language plus optional script and region.

    Attributes:
        language: The language component.
        script: Optional script component.
        region: Optional region component.
    """

    language: LanguageCode
    script: Optional[ScriptCode] = None
    region: Optional[RegionCode] = None

    @property
    def identifier(self) -> str:
        """Canonical identifier (e.g., "zh-Hant-TW")."""
        return locale_identifier(self.language, self.script, self.region)

    def __str__(self) -> str:
        return self.identifier


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def parse_language(code: str) -> LanguageCode:
    """Parse a language code, normalizing whitespace and case.

    Args:
        code: Language code string (e.g., "en", "EN").

    Returns:
        Matching LanguageCode.

    Raises:
        UnknownCode: If the code is not a known ISO 639-1 code.
    """
    if isinstance(code, LanguageCode):
        return code
    try:
        return LanguageCode(str(code).strip().lower())
    except ValueError as e:
        raise UnknownCode("language", code) from e


def parse_script(code: str) -> ScriptCode:
    """Parse a script code (e.g., "Latn", "hans").

    Raises:
        UnknownCode: If the code is not a known script.
    """
    if isinstance(code, ScriptCode):
        return code
    try:
        return ScriptCode(str(code).strip().title())
    except ValueError as e:
        raise UnknownCode("script", code) from e


def parse_region(code: str) -> RegionCode:
    """Parse a region code (e.g., "US", "br", "419").

    Raises:
        UnknownCode: If the code is not a known region.
    """
    if isinstance(code, RegionCode):
        return code
    try:
        return RegionCode(str(code).strip().upper())
    except ValueError as e:
        raise UnknownCode("region", code) from e


def default_language() -> LanguageCode:
    """Configured fallback language (CATALOG_DEFAULT_LANGUAGE, "en")."""
    return parse_language(get_settings().catalog.default_language)


def default_region() -> RegionCode:
    """Configured fallback region (CATALOG_DEFAULT_REGION, "US")."""
    return parse_region(get_settings().catalog.default_region)


def locale_identifier(
    language: LanguageCode,
    script: Optional[ScriptCode] = None,
    region: Optional[RegionCode] = None,
) -> str:
    """Format the canonical locale identifier: language[-Script][-REGION].

    Args:
        language: Language component.
        script: Optional script component.
        region: Optional region component.

    Returns:
        Identifier such as "en", "zh-Hans", "pt-BR" or "zh-Hant-TW".
    """
    parts = [parse_language(language).value]
    if script is not None:
        parts.append(parse_script(script).value)
    if region is not None:
        parts.append(parse_region(region).value)
    return "-".join(parts)


def parse_locale_identifier(identifier: str) -> LocaleTuple:
    """Parse a locale identifier using "-" or "_" separators.

    A four letter component is read as a script, anything else following the
    language as a region.

    Args:
        identifier: Identifier such as "pt_BR" or "zh-Hans-CN".

    Returns:
        LocaleTuple with the parsed components.

    Raises:
        UnknownCode: If a component is unknown or the identifier is malformed.
    """
    parts = [p for p in str(identifier).strip().replace("_", "-").split("-") if p]
    if not parts or len(parts) > 3:
        raise UnknownCode("locale", identifier)

    language = parse_language(parts[0])
    script = None
    region = None
    for part in parts[1:]:
        if len(part) == 4 and part.isalpha() and script is None and region is None:
            script = parse_script(part)
        elif region is None:
            region = parse_region(part)
        else:
            raise UnknownCode("locale", identifier)
    return LocaleTuple(language=language, script=script, region=region)


def locale_matches(
    candidate: LocaleTuple,
    language: LanguageCode,
    script: Optional[ScriptCode] = None,
    region: Optional[RegionCode] = None,
    exact: bool = True,
) -> bool:
    """Check whether a locale matches the requested components.

    Exact matching compares all three components (None must equal None).
    Partial matching requires the same language, and the same script/region
    only where one was requested; a bare language is a language-only match.

    Args:
        candidate: The locale being tested.
        language: Requested language.
        script: Requested script, if any.
        region: Requested region, if any.
        exact: Exact or partial matching.

    Returns:
        True when the candidate matches.
    """
    if candidate.language != language:
        return False
    if exact:
        return candidate.script == script and candidate.region == region
    if script is not None and candidate.script != script:
        return False
    if region is not None and candidate.region != region:
        return False
    return True


def resolve_language(
    raw: Optional[str],
    strict: bool = False,
    default: Optional[LanguageCode] = None,
) -> LanguageCode:
    """Resolve a stored language value.

    Absent or blank values resolve to the default language. Unknown values
    raise in strict mode and fall back to the default otherwise.

    Args:
        raw: Stored value.
        strict: Raise instead of falling back on an unknown value.
        default: Fallback language; the configured default when None.

    Raises:
        UnknownCode: If ``strict`` and the value is not a known language.
    """
    fallback = default if default is not None else default_language()
    if _is_blank(raw):
        return fallback
    try:
        return parse_language(raw)
    except UnknownCode:
        if strict:
            raise
        logger.warning(
            "locale_fallback_applied",
            code_type="language",
            value=raw,
            fallback=fallback.value,
        )
        return fallback


def resolve_script(raw: Optional[str], strict: bool = False) -> Optional[ScriptCode]:
    """Resolve a stored script value; absent or (leniently) unknown is None.

    Raises:
        UnknownCode: If ``strict`` and the value is not a known script.
    """
    if _is_blank(raw):
        return None
    try:
        return parse_script(raw)
    except UnknownCode:
        if strict:
            raise
        logger.warning("locale_fallback_applied", code_type="script", value=raw)
        return None


def resolve_region(raw: Optional[str], strict: bool = False) -> Optional[RegionCode]:
    """Resolve a stored region value; absent or (leniently) unknown is None.

    An unreadable region is dropped rather than replaced, so the translation
    reads as the bare language (plus script) instead of taking on a locale
    another translation may already hold.

    Raises:
        UnknownCode: If ``strict`` and the value is not a known region.
    """
    if _is_blank(raw):
        return None
    try:
        return parse_region(raw)
    except UnknownCode:
        if strict:
            raise
        logger.warning("locale_fallback_applied", code_type="region", value=raw)
        return None

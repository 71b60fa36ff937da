"""
Conversion of ISO 3166-1 alpha-2 country codes to AFAS country codes.

AFAS mostly uses international vehicle registration codes. For most
European countries these equal the ISO code; the others are listed in
ISO_TO_AFAS. Any other ISO code is accepted only if it is also a known
AFAS code.
"""

from typing import Optional

ISO_TO_AFAS = {
    "AN": "NA",   # Netherlands Antilles
    "AS": "ASM",  # American Samoa
    "AT": "A",
    "BE": "B",
    "BF": "BU",   # Burkina Faso
    "BH": "BRN",  # Bahrain
    "BI": "RU",   # Burundi
    "BJ": "DY",   # Benin
    "BW": "RB",   # Botswana
    "BZ": "BH",   # Belize
    "CL": "RCH",  # Chile
    "CM": "TC",   # Cameroon
    "DE": "D",
    "DM": "WD",   # Dominica
    "EG": "ET",   # Egypt
    "ET": "ETH",  # Ethiopia
    "ES": "E",
    "FI": "FIN",
    "FR": "F",
    "GD": "WG",   # Grenada
    "GQ": "CQ",   # Equatorial Guinea
    "HU": "H",
    "HT": "RH",   # Haiti
    "IN": "RI",   # Indonesia
    "IT": "I",
    "JM": "JA",   # Jamaica
    "JP": "J",
    "KP": "KO",   # Korea (North)
    "KR": "ROK",  # Korea (South)
    "LB": "RL",   # Lebanon
    "LC": "WL",   # Saint Lucia
    "LI": "FL",   # Liechtenstein
    "LK": "CL",   # Sri Lanka
    "LR": "LB",   # Liberia
    "LU": "L",
    "MS": "MSR",  # Montserrat
    "MU": "MS",   # Mauritius
    "NA": "SWA",  # Namibia
    "NE": "RN",   # Niger
    "NO": "N",
    "PH": "RP",   # Philippines
    "PT": "P",
    "RU": "RUS",
    "SA": "AS",   # Saudi Arabia
    "SC": "SY",   # Seychelles
    "SD": "SUD",  # Sudan
    "SE": "S",
    "SI": "SLO",
    "SO": "SP",   # Somalia
    "SR": "SME",  # Suriname
    "SV": "EL",   # El Salvador
    "SY": "SYR",  # Syria
    "SZ": "SD",   # Swaziland
    "TC": "TCA",  # Turks and Caicos Islands
    "TW": "RC",   # Taiwan
    "US": "USA",
    "VC": "WV",   # Saint Vincent and the Grenadines
    "VE": "YV",   # Venezuela
}

AFAS_COUNTRY_CODES = frozenset("""
    AFG AL DZ ASM AND AO AIA AG RA AM AUS A AZ BS BRN BD BDS BY B BH BM DY BT
    BOL BA RB BR BRU BG BU RU K TC CDN CV RCA TD RCH CN CO KM RCB CR CI HR C CY
    CZ DK DJI WD DOM TLS EC ET EL CQ ERI EE ETH FLK FRO FJI FIN F GF PYF ATF GA
    WAG GE D GH GIB GR GRO WG GP GUM GCA GN GW GUY RH HMD HON HK H IS IND RI IR
    IRQ IRL IL I JA J HKJ KZ EAK KIR KO ROK KWT KG LAO LV RL LS LB LAR FL LT L
    MO MK RM MW MAL MV RMM M MAR MQ RIM MS MYT MEX MIC MD MC MON MSR MA MOC BUR
    SWA NR NL NPL NA NCL NZ NIC RN WAN NIU NFK MNP N OMA PK PLW PSE PA PNG PY
    PE RP PCN PL P PR QA REU RO RUS RWA KN WL WV WSM RSM ST AS SN SRB SY WAL SGP
    SK SLO SB SP ZA GS E CL SHN SPM SUD SME SJM SD S CH SYR RC TAD EAT T TG TK
    TO TT TN TR TMN TCA TV EAU UA AE GB USA UMI ROU OEZ VU VAT YV VN VGB VIR WLF
    ESH YMN Z ZW
""".split())


def convert_iso_country_code(iso_code: str) -> Optional[str]:
    """
    Return the AFAS country code for an ISO 3166-1 alpha-2 code, or None if unknown.

    Examples:
        convert_iso_country_code("nl") -> "NL"
        convert_iso_country_code("DE") -> "D"
        convert_iso_country_code("XX") -> None
    """
    if not isinstance(iso_code, str):
        return None
    code = iso_code.strip().upper()
    if code in ISO_TO_AFAS:
        return ISO_TO_AFAS[code]
    return code if code in AFAS_COUNTRY_CODES else None

"""
Built-in property definitions for AFAS update connector objects.

Field names are AFAS' own; aliases are readable names that may be used in
input instead. Definitions that depend on element values or the parent
type (FbSalesLines, KnContact, KnPerson, KnOrganisation) or need
conversions (ISO country fields) are completed by the containers in
afas_containers.
"""

from typing import Any, Dict

# Sales relation defaults are what AFAS fills in through its UI for new relations.
KN_SALES_RELATION_PER = {
    "id_property": "DbId",
    "objects": {
        "KnPerson": {"alias": "person"},
    },
    "fields": {
        "IsDb": {"type": "boolean", "default": True},
        "PaCd": {"default": "14"},
        "CuId": {"alias": "currency_code", "default": "EUR"},
        "Bl": {"default": "false"},
        "AuPa": {"default": "0"},
        "ColA": {"alias": "alias"},
        "VtIn": {"default": "1"},
        "PfId": {"default": "*****"},
    },
}

KN_SUBJECT = {
    "id_property": "SbId",
    "objects": {
        "KnSubjectLink": {"alias": "subject_link"},
        "KnS01": {"alias": "subject_link_1"},
        "KnS02": {"alias": "subject_link_2"},
    },
    "fields": {
        "StId": {"alias": "type", "type": "integer", "required": True},
        "Ds": {"alias": "description"},
        "SbTx": {"alias": "comment"},
        "Da": {"alias": "date", "type": "date"},
        "EmId": {"alias": "responsible"},
        "SbHi": {"type": "integer"},
        "SaId": {"alias": "action_type"},
        "ViPr": {},
        "ScId": {"alias": "source"},
        "DtFr": {"alias": "start_date", "type": "date"},
        "DtTo": {"alias": "end_date", "type": "date"},
        "St": {"alias": "done", "type": "boolean"},
        "DtSt": {"alias": "done_date", "type": "date"},
        "FvF1": {"type": "integer"},
        "FvF2": {"type": "integer"},
        "FvF3": {"type": "integer"},
        "SbBl": {"alias": "blocked", "type": "boolean"},
        "SbPa": {"alias": "attachment"},
        "FileTrans": {"type": "boolean"},
        "FileStream": {},
    },
}

KN_SUBJECT_LINK = {
    "id_property": "SbId",
    "fields": {
        "DoCRM": {"type": "boolean"},
        "ToBC": {"alias": "is_org_person", "type": "boolean"},
        "ToEm": {"alias": "is_employee", "type": "boolean"},
        "ToSR": {"alias": "is_sales_relation", "type": "boolean"},
        "ToPR": {"alias": "is_purchase_relation", "type": "boolean"},
        "ToCl": {"alias": "is_client_ib", "type": "boolean"},
        "ToCV": {"alias": "is_client_vpb", "type": "boolean"},
        "ToEr": {"alias": "is_employer", "type": "boolean"},
        "ToAp": {"alias": "is_applicant", "type": "boolean"},
        "SfTp": {"alias": "destination_type", "type": "integer"},
        "SfId": {"alias": "destination_id"},
        "BcId": {"alias": "org_person"},
        "CdId": {"alias": "contact", "type": "integer"},
        "SiUn": {"type": "integer"},
        "SiTp": {"alias": "sales_invoice_type", "type": "integer"},
        "SiId": {"alias": "sales_invoice"},
        "PiUn": {"type": "integer"},
        "PiTp": {"alias": "purchase_invoice_type", "type": "integer"},
        "PiId": {"alias": "purchase_invoice"},
        "FiYe": {"alias": "fiscal_year", "type": "integer"},
        "PjId": {"alias": "project"},
        "CaId": {"alias": "campaign", "type": "integer"},
        "FaSn": {"type": "integer"},
        "QuId": {},
        "SjId": {"type": "integer"},
        "SuNr": {"alias": "subscription", "type": "integer"},
        "DvSn": {"type": "integer"},
        "VaIt": {"alias": "item_type"},
        "BiId": {"alias": "item_code"},
        "CrId": {"alias": "course_event", "type": "integer"},
        "AbId": {"type": "integer"},
        "FoSn": {"type": "integer"},
    },
}

KN_S01 = {
    "id_property": "SbId",
    "fields": {
        "U001": {"alias": "end_date", "type": "date"},
        "U002": {"alias": "id_number"},
    },
}

KN_S02 = {
    "id_property": "SbId",
    "fields": {
        "U001": {"alias": "contract_number"},
        "U002": {"alias": "start_date", "type": "date"},
        "U003": {"alias": "end_date", "type": "date"},
        "U004": {"alias": "value", "type": "decimal"},
        "U005": {"alias": "ended", "type": "boolean"},
        "U006": {"alias": "recurring", "type": "boolean"},
        "U007": {"alias": "cancel_term"},
    },
}

# 'country_iso' is not an AFAS field; it is converted into CoId.
KN_BASIC_ADDRESS = {
    "iso_country_fields": {"country_iso": "CoId"},
    "fields": {
        "CoId": {"alias": "country"},
        "country_iso": {},
        # If true, HmNr holds the P.O. box number.
        "PbAd": {"alias": "is_po_box", "type": "boolean", "required": True, "default": False},
        "StAd": {},
        "Ad": {"alias": "street", "required": True},
        "HmNr": {"alias": "house_number", "type": "integer"},
        "HmAd": {"alias": "house_number_ext"},
        "ZpCd": {"alias": "zip_code", "required": True},
        "Rs": {"alias": "town", "required": True},
        "AdAd": {},
        # Ignored by AFAS for a first address; see KnBasicAddress container.
        "BeginDate": {"type": "date"},
        "ResZip": {"alias": "resolve_zip", "type": "boolean", "default": False},
    },
}

FB_SALES = {
    "iso_country_fields": {"dest_country_iso": "CoId"},
    "objects": {
        "FbSalesLines": {"alias": "line_items", "multiple": True},
    },
    "fields": {
        "OrNu": {},
        "OrDa": {"alias": "date", "type": "date"},
        "DbId": {"alias": "sales_relation"},
        "DaDe": {"alias": "delivery_date_req", "type": "date"},
        "DaPr": {"alias": "delivery_date_ack", "type": "date"},
        "CuId": {"alias": "currency_code"},
        "Rate": {"alias": "currency_rate"},
        "BkOr": {"type": "boolean"},
        "SaCh": {"alias": "sales_channel"},
        "VaDu": {"alias": "vat_due"},
        "InVa": {"alias": "includes_vat"},
        "PaCd": {},
        "PaTp": {"alias": "payment_type"},
        "Re": {"alias": "comment"},
        "Unit": {"type": "integer"},
        "Coll": {"type": "boolean"},
        "CrOr": {"type": "boolean"},
        "Rout": {},
        "War": {"alias": "warehouse"},
        "CoDn": {"type": "boolean"},
        "CoIn": {"type": "boolean"},
        "DlPr": {"alias": "delivery_prio", "type": "integer"},
        "LgId": {"alias": "language"},
        "DeCo": {"alias": "delivery_cond"},
        "CsTy": {"alias": "cbs_type"},
        "VaTr": {},
        "VaSt": {},
        "VaGs": {},
        "VaTa": {},
        "CoId": {"alias": "dest_country_afas"},
        "dest_country_iso": {},
        "InPc": {"type": "decimal"},
        "VaCl": {"type": "boolean"},
        "ClPc": {"type": "decimal"},
        "PaPc": {"type": "decimal"},
        "VaPa": {"type": "boolean"},
        "VaYN": {"type": "boolean"},
        "VaBc": {"alias": "barcode_type"},
        "BaCo": {"alias": "barcode"},
        "PrLa": {},
        "JoCo": {"alias": "journal"},
        "FaTo": {"alias": "invoice_to"},
        "FuOr": {"alias": "future_order", "type": "boolean"},
        "DtId": {"alias": "delivery_type", "type": "integer"},
        "PrId": {"alias": "project"},
        "PrSt": {"alias": "project_stage"},
        "SeSt": {"alias": "delivery_state"},
        "SeWe": {"alias": "weight", "type": "decimal"},
        "QuCl": {"type": "integer"},
        "PkTp": {"alias": "package_type"},
        "TrPt": {"alias": "shipping_company"},
        "SsId": {"alias": "shipping_service"},
        "OrPr": {"alias": "order_processing"},
        "AmDp": {"type": "decimal"},
        "VeId": {},
        "DlAd": {"type": "integer"},
        "ExAd": {},
        "FxBl": {"alias": "block_order", "type": "boolean"},
        "DlYN": {"type": "boolean"},
    },
}

# Defaults and requiredness for article lines are set by the FbSalesLines container.
FB_SALES_LINES = {
    "objects": {
        "FbOrderBatchLines": {"alias": "batch_line_items", "multiple": True},
        "FbOrderSerialLines": {"alias": "serial_line_items", "multiple": True},
    },
    "fields": {
        # 1 = Grootboekrekening, 2 = Artikel, 7 = Samenstelling, ...
        "VaIt": {"alias": "item_type", "type": "integer", "default": 2},
        "ItCd": {"alias": "item_code"},
        "Ds": {"alias": "description"},
        "VaRc": {"alias": "vat_type"},
        "BiUn": {"alias": "unit_type"},
        "QuUn": {"alias": "quantity", "type": "decimal"},
        "QuLe": {"type": "decimal"},
        "QuWi": {"type": "decimal"},
        "QuHe": {"type": "decimal"},
        "Qu": {"alias": "quantity_ordered"},
        "QuDl": {"alias": "quantity_deliver"},
        "PrLi": {"alias": "price_list"},
        "War": {"alias": "warehouse"},
        "EUSe": {"type": "boolean"},
        "VaWt": {"alias": "weight_unit"},
        "NeWe": {"type": "decimal"},
        "GrWe": {"type": "decimal"},
        "Upri": {"alias": "unit_price", "type": "decimal"},
        "CoPr": {"alias": "cost_price", "type": "decimal"},
        "VaAD": {},
        "PRDc": {"alias": "discount_perc", "type": "decimal"},
        "ARDc": {"type": "decimal"},
        "MaAD": {"type": "boolean"},
        "Re": {"alias": "comment"},
        "GuLi": {"alias": "guid"},
        "StL1": {"alias": "dimension_1"},
        "StL2": {"alias": "dimension_2"},
        "DiDe": {"alias": "direct_delivery", "type": "boolean"},
    },
}

FB_ORDER_BATCH_LINES = {
    "fields": {
        "BaNu": {"alias": "batch_number"},
        "BiUn": {"alias": "unit_type"},
        "QuUn": {"alias": "quantity_units", "type": "decimal"},
        "Qu": {"alias": "quantity", "type": "decimal"},
        "QuIn": {"alias": "quantity_invoice", "type": "decimal"},
        "Re": {"alias": "comment"},
        "QuLe": {"type": "decimal"},
        "QuWi": {"type": "decimal"},
        "QuHe": {"type": "decimal"},
    },
}

FB_ORDER_SERIAL_LINES = {
    "fields": {
        "SeNu": {"alias": "serial_number"},
        "BiUn": {"alias": "unit_type"},
        "QuUn": {"alias": "quantity_units", "type": "decimal"},
        "Qu": {"alias": "quantity", "type": "decimal"},
        "QuIn": {"alias": "quantity_invoice", "type": "decimal"},
        "Re": {"alias": "comment"},
    },
}

FI_ENTRY_PAR = {
    "objects": {
        "FiEntries": {"alias": "line_items", "multiple": True},
    },
    "fields": {
        "Year": {"alias": "fiscal_year", "required": True},
        "Peri": {"alias": "period", "required": True},
        "UnId": {"alias": "administration"},
        "JoCo": {"alias": "journal", "required": True},
        "AdDc": {"alias": "create_dimension_code"},
        "AdDa": {"alias": "create_dimension_allocation"},
        "PrTp": {"alias": "entry_type"},
        "AuNu": {"alias": "auto_number_invoice"},
    },
}

FI_ENTRIES = {
    "fields": {
        "EnNo": {"alias": "entry_number", "required": True},
        "VaAs": {"alias": "account_reference", "required": True},
        "AcNr": {"alias": "account_number", "required": True},
        "EnDa": {"alias": "entry_date", "required": True, "type": "date"},
        "BpDa": {"alias": "voucher_date", "required": True, "type": "date"},
        "BpNr": {"alias": "voucher_number"},
        "InId": {"alias": "invoice_number"},
        "Ds": {"alias": "description"},
        "AmDe": {"alias": "amount_debit", "type": "decimal"},
        "AmCr": {"alias": "amount_credit", "type": "decimal"},
        "VaId": {"alias": "vat_code"},
        "CuId": {"alias": "currency_code"},
        "AmDc": {"alias": "currency_amount_debit", "type": "decimal"},
        "AmCc": {"alias": "currency_amount_credit", "type": "decimal"},
        "OrNu": {"alias": "sales_order_number"},
        "Fref": {"alias": "invoice_reference"},
    },
}

# KnContact, KnPerson and KnOrganisation are completed per parent type and
# element by the OrgPersonContact container. KnContact has no id; a
# standalone contact is identified by BcCoOga + BcCoPer.
KN_CONTACT = {
    "iso_country_fields": {},
    "objects": {
        "KnBasicAddressAdr": {"type": "KnBasicAddress", "alias": "address"},
        "KnBasicAddressPad": {"type": "KnBasicAddress", "alias": "postal_address"},
    },
    "fields": {
        "BcCoOga": {"alias": "organisation_code"},
        "BcCoPer": {"alias": "person_code"},
        "PadAdr": {"alias": "postal_address_is_address", "type": "boolean"},
        "ExAd": {},
        "ViFu": {},
        "FuDs": {"alias": "job_title"},
        "Corr": {"type": "boolean"},
        "ViMd": {},
        "TeNr": {"alias": "phone"},
        "FaNr": {"alias": "fax"},
        "MbNr": {"alias": "mobile"},
        "EmAd": {"alias": "email"},
        "HoPa": {"alias": "homepage"},
        "Re": {"alias": "comment"},
        "Bl": {"alias": "blocked", "type": "boolean"},
        "AtLn": {},
        "LeHe": {},
        "SocN": {},
        "Face": {"alias": "facebook"},
        "Link": {"alias": "linkedin"},
        "Twtr": {"alias": "twitter"},
        "AddToPortal": {"type": "boolean"},
        "EmailPortal": {},
    },
}

# MatchPer values: 0 code (BcCo), 1 BSN, 2-6 name combined with other
# details, 7 always insert.
KN_PERSON = {
    "iso_country_fields": {"birth_country_iso": "CoBi"},
    "objects": {
        "KnBasicAddressAdr": {"type": "KnBasicAddress", "alias": "address"},
        "KnBasicAddressPad": {"type": "KnBasicAddress", "alias": "postal_address"},
        "KnContact": {"alias": "contact"},
    },
    "fields": {
        "AutoNum": {"alias": "auto_num", "type": "boolean"},
        "MatchPer": {"alias": "match_method"},
        "BcCo": {"alias": "code"},
        "SeNm": {"alias": "search_name"},
        "CaNm": {"alias": "name"},
        "FiNm": {"alias": "first_name", "required": True},
        "In": {"alias": "initials"},
        "Is": {"alias": "prefix"},
        "LaNm": {"alias": "last_name", "required": True},
        "SpNm": {"type": "boolean", "default": False},
        "IsBi": {},
        "NmBi": {},
        "IsPa": {},
        "NmPa": {},
        "ViUs": {},
        # M, V or O (unknown).
        "ViGe": {"alias": "gender", "default": "O"},
        "PsNa": {},
        "DaBi": {"alias": "birth_date", "type": "date"},
        "CoBi": {},
        "birth_country_iso": {},
        "RsBi": {},
        "SoSe": {"alias": "bsn"},
        "ViCs": {},
        "DaMa": {"type": "date"},
        "DaDi": {"type": "date"},
        "DaDe": {"type": "date"},
        "TtId": {},
        "TtEx": {},
        "LeHe": {},
        "PadAdr": {"alias": "postal_address_is_address", "type": "boolean"},
        "TeNr": {"alias": "phone"},
        "TeN2": {},
        "FaNr": {"alias": "fax"},
        "MbNr": {"alias": "mobile"},
        "MbN2": {},
        "EmAd": {"alias": "email"},
        "EmA2": {},
        "HoPa": {"alias": "homepage"},
        "Corr": {"type": "boolean", "default": False},
        "ViMd": {},
        "Re": {"alias": "comment"},
        "StId": {},
        "SocN": {},
        "Face": {"alias": "facebook"},
        "Link": {"alias": "linkedin"},
        "Twtr": {"alias": "twitter"},
        "FileName": {},
        "FileStream": {},
        "AddToPortal": {"type": "boolean"},
        "EmailPortal": {},
    },
}

# MatchOga values: 0 code (BcCo), 1 chamber of commerce number, 2 fiscal
# number, 3 name, 4 address, 5 postal address, 6 always insert.
KN_ORGANISATION = {
    "iso_country_fields": {},
    "objects": {
        "KnBasicAddressAdr": {"type": "KnBasicAddress", "alias": "address"},
        "KnBasicAddressPad": {"type": "KnBasicAddress", "alias": "postal_address"},
        "KnContact": {"alias": "contact"},
    },
    "fields": {
        "AutoNum": {"alias": "auto_num", "type": "boolean"},
        "MatchOga": {"alias": "match_method"},
        "BcCo": {"alias": "code"},
        "SeNm": {"alias": "search_name"},
        "Nm": {"alias": "name"},
        "ViLe": {"alias": "org_type"},
        "ViLb": {"alias": "branche"},
        "CcNr": {"alias": "coc_number"},
        "CcDa": {"type": "date"},
        "NmRg": {},
        "RsRg": {},
        "TtId": {},
        "LeHe": {},
        "OuId": {},
        # Same meaning as PadAdr in KnContact and KnPerson.
        "PbAd": {"alias": "postal_address_is_address", "type": "boolean"},
        "TeNr": {"alias": "phone"},
        "FaNr": {"alias": "fax"},
        "MbNr": {"alias": "mobile"},
        "EmAd": {"alias": "email"},
        "HoPa": {"alias": "homepage"},
        "Corr": {"type": "boolean"},
        "ViMd": {},
        "Re": {"alias": "comment"},
        "FiNr": {"alias": "fiscal_number"},
        "StId": {},
        "SocN": {},
        "Face": {"alias": "facebook"},
        "Link": {"alias": "linkedin"},
        "Twtr": {"alias": "twitter"},
        "BcPa": {},
    },
}

BUILTIN_DEFINITIONS: Dict[str, Dict[str, Any]] = {
    "KnSalesRelationPer": KN_SALES_RELATION_PER,
    "KnSubject": KN_SUBJECT,
    "KnSubjectLink": KN_SUBJECT_LINK,
    "KnS01": KN_S01,
    "KnS02": KN_S02,
    "KnBasicAddress": KN_BASIC_ADDRESS,
    "FbSales": FB_SALES,
    "FbSalesLines": FB_SALES_LINES,
    "FbOrderBatchLines": FB_ORDER_BATCH_LINES,
    "FbOrderSerialLines": FB_ORDER_SERIAL_LINES,
    "FiEntryPar": FI_ENTRY_PAR,
    "FiEntries": FI_ENTRIES,
    "KnContact": KN_CONTACT,
    "KnPerson": KN_PERSON,
    "KnOrganisation": KN_ORGANISATION,
}

"""
Type-specific containers for AFAS objects that need more than property definitions.
"""

from datetime import date
from typing import Any, Dict, Optional, Tuple
import logging
import re

from update_connector.behavior import ChangeBehavior, ValidationBehavior
from update_connector.errors import DefinitionError, InputError
from update_connector.input_normalizer import FIELDS_KEY, OBJECTS_KEY, ElementIndex
from update_connector.property_definitions import PropertyDefinition
from update_connector.record_container import RecordContainer
from update_connector.validator import ErrorMap, add_error

from .country_codes import convert_iso_country_code

logger = logging.getLogger(__name__)

# Countries where the house number is commonly written after the street name.
# No country is treated as NL.
HOUSE_NUMBER_COUNTRIES = ("B", "D", "DK", "F", "FIN", "H", "NL", "NO", "S")

# Street, then a number, then an optional suffix of at most 30 characters.
# Non-greedy so that for "STREET NR1 NR2", NR1 ends up in the number.
_STREET_RE = re.compile(r"^(.*?\S)\s+(\d+)(?:\s+)?(\S.{0,29})?\s*$")
_HOUSE_NUMBER_RE = re.compile(r"^\s*(\d+)(?:\s+)?(\S.{0,29})?\s*$")

ARTICLE_ITEM_TYPES = ("2", "7")

KN_CONTACT_TYPE = "KnContact"
KN_PERSON_TYPE = "KnPerson"
KN_ORGANISATION_TYPE = "KnOrganisation"
KN_SALES_RELATION_PER_TYPE = "KnSalesRelationPer"

# Last name prefixes, longest first where one starts with another. Trailing spaces are part of the match.
NAME_PREFIXES = ("van der ", "van de ", "van ", "v/d ", "v.d.", "v.", "v ", "de ", "'t ")
_FIRST_NAME_RE = re.compile(r"^[A-Za-z \-]+$")

# Mobile numbers, then 3- and 4-digit area codes. Area codes start with 0,
# +31 or "+31 (0)"; non-mobile ones may be written between brackets.
_DUTCH_PHONE_PATTERNS = [
    re.compile(r"""^\s*
        ((?:\+31[-\s]?(?:\(0\))?\s?|0)6)
        [-\s]* ([1-9]\s*(?:[0-9]\s*){7})
        \s*$""", re.VERBOSE),
    re.compile(r"""^\s*
        ((?:\+31[-\s]?(?:\(0\))?\s?|0)[1-5789][0-9]
        | \(0[1-5789][0-9]\))
        [-\s]* ([1-9]\s*(?:[0-9]\s*){6})
        \s*$""", re.VERBOSE),
    re.compile(r"""^\s*
        ((?:\+31[-\s]?(?:\(0\))?\s?|0)[1-5789][0-9]{2}
        | \(0[1-5789][0-9]{2}\))
        [-\s]* ([1-9]\s*(?:[0-9]\s*){5})
        \s*$""", re.VERBOSE),
]


class ObjectWithCountry(RecordContainer):
    """
    Container for objects with fields holding ISO country codes.

    The definitions' "iso_country_fields" maps each ISO field to the AFAS
    country field it is converted into. The ISO field itself is removed.
    """

    def pre_validate_fields(
        self,
        fields: Dict[str, Any],
        element_index: ElementIndex,
        action: str,
        change: ChangeBehavior,
        validation: ValidationBehavior,
        element_descr: str,
    ) -> Tuple[Dict[str, Any], ErrorMap]:
        errors: ErrorMap = {}
        definition = self.get_property_definitions()
        iso_fields = definition.extra.get("iso_country_fields")
        if not isinstance(iso_fields, dict):
            raise DefinitionError(f"'{self.type}' object has no / a non-dictionary 'iso_country_fields' property definition.")
        for iso_field, afas_field in iso_fields.items():
            if not isinstance(afas_field, str):
                raise DefinitionError(f"'iso_country_fields' property definition for '{self.type}' object contains a non-string value.")
            fields = self.convert_iso_country_field(fields, iso_field, afas_field, element_descr, errors)
        return fields, errors

    @staticmethod
    def convert_iso_country_field(fields: Dict[str, Any], iso_field: str, afas_field: str, element_descr: str, errors: ErrorMap) -> Dict[str, Any]:
        iso_code = fields.get(iso_field)
        if not iso_code:
            return fields
        afas_code = convert_iso_country_code(iso_code)
        if not afas_code:
            add_error(errors, f"Fields:{iso_field}", f"Unknown ISO country code '{iso_code}' in {element_descr}.")
            return fields
        if fields.get(afas_field):
            if fields[afas_field] != afas_code:
                add_error(
                    errors,
                    f"Fields:{afas_field}",
                    f"Inconsistent ISO country code '{iso_code}' and AFAS code '{fields[afas_field]}' found in {element_descr}.",
                )
                return fields
        else:
            fields[afas_field] = afas_code
        del fields[iso_field]
        return fields


class KnBasicAddress(ObjectWithCountry):
    """
    Address container.

    BeginDate is left out for inserts (AFAS ignores it for a first address)
    and set to today for other actions if it is empty. With allow_changes,
    house numbers are split off the street name.
    """

    def pre_validate_fields(
        self,
        fields: Dict[str, Any],
        element_index: ElementIndex,
        action: str,
        change: ChangeBehavior,
        validation: ValidationBehavior,
        element_descr: str,
    ) -> Tuple[Dict[str, Any], ErrorMap]:
        fields, errors = super().pre_validate_fields(fields, element_index, action, change, validation, element_descr)
        if change.allow_changes:
            converted = self.convert_street_name(fields)
            if converted != fields:
                logger.debug(f"Split house number off street in {element_descr}")
            fields = converted
        return fields, errors

    def post_validate_fields(
        self,
        fields: Dict[str, Any],
        element_index: ElementIndex,
        action: str,
        change: ChangeBehavior,
        validation: ValidationBehavior,
        element_descr: str,
    ) -> Tuple[Dict[str, Any], ErrorMap]:
        if action == "insert":
            fields.pop("BeginDate", None)
        elif not fields.get("BeginDate"):
            # Not a default: defaults are not applied on updates.
            fields["BeginDate"] = date.today().isoformat()
        return fields, {}

    @staticmethod
    def convert_street_name(fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Split house number and suffix off the street, or a suffix off the house number.

        Examples:
            {"Ad": "Main Street 12a"} -> {"Ad": "Main Street", "HmNr": "12", "HmAd": "a"}
            {"Ad": "Main Street", "HmNr": "12 bis"} -> {"Ad": "Main Street", "HmNr": "12", "HmAd": "bis"}
        """
        fields = dict(fields)
        street = fields.get("Ad")
        match = None
        if (
            isinstance(street, str)
            and street
            and not fields.get("HmNr")
            and not fields.get("HmAd")
            and (not fields.get("CoId") or fields["CoId"] in HOUSE_NUMBER_COUNTRIES)
        ):
            match = _STREET_RE.match(street)
        if match:
            fields["Ad"] = match.group(1).lstrip()
            fields["HmNr"] = match.group(2)
            if match.group(3):
                fields["HmAd"] = match.group(3).rstrip()
        elif fields.get("HmNr") and not fields.get("HmAd"):
            match = _HOUSE_NUMBER_RE.match(str(fields["HmNr"]))
            if match and match.group(2):
                fields["HmNr"] = match.group(1)
                fields["HmAd"] = match.group(2).rstrip()
        return fields


class FbSalesLines(RecordContainer):
    """
    Sales order line container.

    For article lines (item type 2 or 7, which is also the default) the unit
    type defaults to 'Stk' and quantity to 1, and item code, unit type,
    quantity and unit price are required.
    """

    def __init__(self, *args, **kwargs) -> None:
        self.__variants: Dict[bool, Tuple[PropertyDefinition, PropertyDefinition]] = {}
        super().__init__(*args, **kwargs)

    def get_property_definitions(self, element: Optional[Dict[str, Any]] = None, element_index: Optional[ElementIndex] = None) -> PropertyDefinition:
        definition = super().get_property_definitions(element, element_index)
        is_article = self.is_article(element, definition)

        cached = self.__variants.get(is_article)
        if cached and cached[0] is definition:
            return cached[1]

        required = {"required": is_article}
        updates = {"ItCd": dict(required), "BiUn": dict(required), "QuUn": dict(required), "Upri": dict(required)}
        removals = None
        if is_article:
            updates["BiUn"]["default"] = "Stk"
            updates["QuUn"]["default"] = 1
        else:
            removals = {"BiUn": ["default"], "QuUn": ["default"]}
        variant = definition.with_field_properties(updates, removals)
        self.__variants[is_article] = (definition, variant)
        return variant

    @staticmethod
    def is_article(element: Optional[Dict[str, Any]], definition: PropertyDefinition) -> bool:
        item_type = None
        if element:
            item_type = (element.get(FIELDS_KEY) or {}).get("VaIt")
        if item_type is None:
            field = definition.fields.get("VaIt")
            item_type = field.default if field and field.has_default else None
        return item_type is not None and str(item_type).strip() in ARTICLE_ITEM_TYPES


class OrgPersonContact(ObjectWithCountry):
    """
    Container for KnContact, KnPerson and KnOrganisation.

    These types share logic around certain fields, and their definitions
    depend on the parent type and on element values:
    - Embedded in an organisation or person, a contact has a contact type
      (ViKc) instead of organisation/person codes. Only a contact inside an
      organisation can hold a person; its contact type then defaults to PRS.
    - A person inside a contact or sales relation has a legislation country
      (CoLw). Inside a sales relation the phone/mobile/e-mail aliases point
      to the private fields, which is what AFAS shows there.
    - An object never embeds its own parent type.
    - AutoNum defaults to true for inserts without a code (BcCo).
    - "Postal address is address" defaults to true if an address is given
      without a postal address.
    - MatchPer / MatchOga get a default that avoids silently overwriting
      existing records: always insert for inserts, otherwise match on the
      first unique number present. These defaults are also applied to
      non-insert actions.

    With allow_changes, name fields of a person are completed from the
    first and last name (see convert_name_fields()).
    """

    def __init__(self, *args, **kwargs) -> None:
        self.__variants: Dict[Tuple, Tuple[PropertyDefinition, PropertyDefinition]] = {}
        super().__init__(*args, **kwargs)

    def get_property_definitions(self, element: Optional[Dict[str, Any]] = None, element_index: Optional[ElementIndex] = None) -> PropertyDefinition:
        definition = super().get_property_definitions(element, element_index)
        if self.type not in (KN_CONTACT_TYPE, KN_PERSON_TYPE, KN_ORGANISATION_TYPE):
            raise DefinitionError(f"No property definitions found for '{self.type}' object in {type(self).__name__} class.")

        fields = (element or {}).get(FIELDS_KEY) or {}
        objects = (element or {}).get(OBJECTS_KEY) or {}
        is_insert = self.__action(element_index) == "insert"
        variant_key = (
            is_insert,
            self.match_default(fields, is_insert),
            bool(fields.get("In")),
            bool(fields.get("BcCo")),
            _has_elements(objects.get("KnBasicAddressAdr")) and not _has_elements(objects.get("KnBasicAddressPad")),
            _has_elements(objects.get(KN_PERSON_TYPE)),
        )
        cached = self.__variants.get(variant_key)
        if cached and cached[0] is definition:
            return cached[1]

        variant = PropertyDefinition.from_dict(self.type, self.__adjust(definition.to_dict(), *variant_key))
        self.__variants[variant_key] = (definition, variant)
        return variant

    def __action(self, element_index: Optional[ElementIndex]) -> str:
        try:
            return self.get_action() if element_index is None else self._action_for(element_index)
        except InputError:
            return ""

    def match_default(self, fields: Dict[str, Any], is_insert: bool) -> Optional[str]:
        """Return the default for MatchPer / MatchOga, or None for contacts."""
        if self.type == KN_PERSON_TYPE:
            if is_insert:
                return "7"
            if fields.get("BcCo"):
                return "0"
            return "1" if fields.get("SoSe") else "0"
        if self.type == KN_ORGANISATION_TYPE:
            if is_insert:
                return "6"
            for value, name in (("0", "BcCo"), ("1", "CcNr"), ("2", "FiNr")):
                if fields.get(name):
                    return value
            return "0"
        return None

    def __adjust(
        self,
        definition: Dict[str, Any],
        is_insert: bool,
        match_default: Optional[str],
        has_initials: bool,
        has_code: bool,
        address_only: bool,
        has_person: bool,
    ) -> Dict[str, Any]:
        fields = definition["fields"]
        objects = definition.setdefault("objects", {})
        parent = self.parent_type

        if self.type == KN_CONTACT_TYPE:
            if parent in (KN_ORGANISATION_TYPE, KN_PERSON_TYPE):
                for name in ("BcCoOga", "BcCoPer", "AddToPortal", "EmailPortal"):
                    fields.pop(name, None)
                # AFD: department, AFL: delivery address, PRS: person (inside an organisation only).
                fields.setdefault("ViKc", {"alias": "contact_type"})
                if parent == KN_ORGANISATION_TYPE:
                    objects.setdefault(KN_PERSON_TYPE, {"alias": "person"})
                    if has_person:
                        fields["ViKc"]["default"] = "PRS"

        elif self.type == KN_PERSON_TYPE:
            if has_initials and "FiNm" in fields:
                fields["FiNm"].pop("required", None)
            if parent in (KN_CONTACT_TYPE, KN_SALES_RELATION_PER_TYPE):
                fields.setdefault("CoLw", {})
                fields.setdefault("regul_country_iso", {})
                definition.setdefault("iso_country_fields", {})["regul_country_iso"] = "CoLw"
                if parent == KN_SALES_RELATION_PER_TYPE:
                    for business, private in (("TeNr", "TeN2"), ("MbNr", "MbN2"), ("EmAd", "EmA2")):
                        alias = fields.get(business, {}).pop("alias", None)
                        if alias and private in fields:
                            fields[private]["alias"] = alias

        if match_default is not None:
            match_field = "MatchPer" if self.type == KN_PERSON_TYPE else "MatchOga"
            if match_field in fields:
                fields[match_field]["default"] = match_default

        objects.pop(parent, None)
        if not objects:
            del definition["objects"]

        if "AutoNum" in fields and is_insert and not has_code:
            fields["AutoNum"]["default"] = True
        if address_only and "KnBasicAddressAdr" in objects and "KnBasicAddressPad" in objects:
            for name in ("PadAdr", "PbAd"):
                if name in fields:
                    fields[name]["default"] = True
        return definition

    def pre_validate_fields(
        self,
        fields: Dict[str, Any],
        element_index: ElementIndex,
        action: str,
        change: ChangeBehavior,
        validation: ValidationBehavior,
        element_descr: str,
    ) -> Tuple[Dict[str, Any], ErrorMap]:
        fields, errors = super().pre_validate_fields(fields, element_index, action, change, validation, element_descr)
        if self.type == KN_PERSON_TYPE and change.allow_changes:
            fields = self.convert_name_fields(fields)
        return fields, errors

    def post_validate_fields(
        self,
        fields: Dict[str, Any],
        element_index: ElementIndex,
        action: str,
        change: ChangeBehavior,
        validation: ValidationBehavior,
        element_descr: str,
    ) -> Tuple[Dict[str, Any], ErrorMap]:
        fields, errors = super().post_validate_fields(fields, element_index, action, change, validation, element_descr)
        if action != "insert":
            # Match methods are operation modifiers rather than data; their
            # defaults also apply when defaults are not allowed for the action.
            definition = self.get_property_definitions({FIELDS_KEY: fields}, element_index)
            for name in ("MatchOga", "MatchPer"):
                field = definition.fields.get(name)
                if field and name not in fields:
                    if not field.has_default:
                        raise DefinitionError(f"No default value found for '{name}' property in '{self.type}' object.")
                    fields[name] = field.default
        return fields, errors

    @staticmethod
    def convert_name_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Derive prefix, initials and search name from first and last name.

        - A (Dutch) prefix like "van der" is split off the last name into Is.
        - Initials are derived from the first name. A first name that only
          holds initials ("J.P.", or a single letter) is moved to In.
        - The search name is the uppercased last name, at most 10 characters.

        Fields that already have a value are not changed.

        Examples:
            {"FiNm": "Jan Peter", "LaNm": "van der Berg"}
              -> {"FiNm": "Jan Peter", "LaNm": "Berg", "Is": "van der", "In": "J.P.", "SeNm": "BERG"}
        """
        fields = dict(fields)
        last_name = fields.get("LaNm")
        if isinstance(last_name, str) and last_name and not fields.get("Is"):
            fields["LaNm"] = last_name = last_name.strip()
            lowered = last_name.lower()
            for prefix in NAME_PREFIXES:
                if lowered.startswith(prefix):
                    fields["Is"] = prefix.rstrip()
                    fields["LaNm"] = last_name[len(prefix):].strip()
                    break

        first_name = fields.get("FiNm")
        if isinstance(first_name, str) and first_name and not fields.get("In"):
            fields["FiNm"] = first_name = first_name.strip()
            if len(first_name) == 1 or (len(first_name) < 16 and "." in first_name and " " not in first_name):
                fields["In"] = first_name.upper() + "." if len(first_name) == 1 else first_name
                del fields["FiNm"]
            elif _FIRST_NAME_RE.match(first_name):
                fields["In"] = "".join(part[0].upper() + "." for part in re.split(r"[- ]+", first_name) if part)

        last_name = fields.get("LaNm")
        if isinstance(last_name, str) and last_name and not fields.get("SeNm"):
            fields["SeNm"] = last_name.upper()[:10]
        return fields

    @staticmethod
    def validate_dutch_phone_number(phone_number: str) -> Optional[Tuple[str, str]]:
        """
        Recognize a Dutch phone number.

        Accepted are numbers like "06-12345678", "010-1234567",
        "+31 (0)10-1234567", "(020) 123 4567" and "0221 123 456". Numbers
        with a wrong number of digits for their area code are rejected.

        Returns:
            (area code, local part) with the area code starting with 0 and
            without separators, or None if the number is not recognized. The
            local part is not reformatted.
        """
        if not isinstance(phone_number, str):
            return None
        for pattern in _DUTCH_PHONE_PATTERNS:
            match = pattern.match(phone_number)
            if match:
                area_code = re.sub(r"[\s()-]", "", match.group(1))
                area_code = re.sub(r"^\+310?", "0", area_code)
                return area_code, match.group(2).strip()
        return None


def _has_elements(value: Any) -> bool:
    return isinstance(value, RecordContainer) and len(value) > 0

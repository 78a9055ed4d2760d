""" JSON Schema to xschema converter. """

# pylint: disable=too-many-branches, too-many-locals

import json
import logging
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urldefrag, urljoin

from xschema.exceptions import SchemaError
from xschema.ref import Ref, Root, build_root
from xschema.schema import (AnySchema, BooleanSchema, IntegerSchema, ListSchema, MapSchema, NullSchema,
                            NumberSchema, StringSchema, FALSE_SCHEMA, TRUE_SCHEMA)

logger = logging.getLogger(__name__)

DRAFTS = ['draft4', 'draft6', 'draft7']
DEFAULT_DRAFT = 'draft7'

_SCHEMA_URIS = {
    'draft-04': 'draft4',
    'draft-06': 'draft6',
    'draft-07': 'draft7',
}

# JSON keyword -> schema field, per keyword family
_FAMILY_KEYWORDS: Dict[str, Dict[str, str]] = {
    'number': {
        'minimum': 'minimum',
        'maximum': 'maximum',
        'exclusiveMinimum': 'exclusive_minimum',
        'exclusiveMaximum': 'exclusive_maximum',
        'multipleOf': 'multiple_of',
    },
    'string': {
        'minLength': 'min_length',
        'maxLength': 'max_length',
        'pattern': 'pattern',
    },
    'array': {
        'items': 'items',
        'additionalItems': 'additional_items',
        'minItems': 'min_items',
        'maxItems': 'max_items',
        'uniqueItems': 'unique_items',
    },
    'object': {
        'properties': 'properties',
        'patternProperties': 'pattern_properties',
        'additionalProperties': 'additional_properties',
        'required': 'required',
        'dependencies': 'dependencies',
        'minProperties': 'min_properties',
        'maxProperties': 'max_properties',
    },
}

# JSON type -> (keyword family, schema class)
_JSON_TYPES = {
    'null': (None, NullSchema),
    'boolean': (None, BooleanSchema),
    'integer': ('number', IntegerSchema),
    'number': ('number', NumberSchema),
    'string': ('string', StringSchema),
    'array': ('array', ListSchema),
    'object': ('object', MapSchema),
}

# schema class checked for each family when a schema declares no type
_UNTYPED_FAMILIES = {
    'number': NumberSchema,
    'string': StringSchema,
    'array': ListSchema,
    'object': MapSchema,
}

# keywords holding schemas that are converted but not enforced
_UNENFORCED_SCHEMA_KEYWORDS = ['contains', 'propertyNames', 'if', 'then', 'else']

# keywords whose object values are data, not schemas
_LITERAL_KEYWORDS = ['default', 'examples', 'const']

_COMPOSITION_KEYWORDS = {'allOf': 'all_of', 'anyOf': 'any_of', 'oneOf': 'one_of'}


def detect_draft(document: Any) -> str:
    """
    Detects the draft of a JSON Schema document from its $schema.

    Args:
        document: The parsed JSON Schema document

    Returns:
        'draft4', 'draft6' or 'draft7'; draft7 if $schema is absent or unknown.
    """
    schema_uri = document.get('$schema') if isinstance(document, dict) else None
    if not schema_uri:
        return DEFAULT_DRAFT
    for marker, draft in _SCHEMA_URIS.items():
        if marker in schema_uri:
            return draft
    logger.warning("Unsupported $schema %s, assuming %s", schema_uri, DEFAULT_DRAFT)
    return DEFAULT_DRAFT


class JsonToXSchemaConverter:
    """
    Converts JSON Schema documents into xschema schema trees.

    Attributes:
    draft: The JSON Schema draft of the document being converted.
    id_keyword: '$id' or 'id', depending on the draft.
    """

    def __init__(self, draft: str = DEFAULT_DRAFT) -> None:
        if draft not in DRAFTS:
            raise SchemaError(f"Unsupported draft {draft!r}, expected one of {DRAFTS}")
        self.draft = draft
        self.id_keyword = 'id' if draft == 'draft4' else '$id'

    def document_id(self, document: Any, base_uri: Optional[str] = None) -> Optional[str]:
        """Returns the absolute URI of a document."""
        schema_id = document.get(self.id_keyword) if isinstance(document, dict) else None
        if not isinstance(schema_id, str):
            return base_uri
        return urljoin(base_uri, schema_id) if base_uri else schema_id

    def json_type_to_schema(self, json_type: Any, base_uri: Optional[str] = None) -> Any:
        """
        Convert a JSON Schema (sub)document to a schema node or reference.

        Args:
            json_type: The JSON Schema object, or a boolean schema
            base_uri: The URI of the enclosing schema resource

        Returns:
            The schema node, or a Ref for $ref schemas.
        """
        if isinstance(json_type, bool):
            if self.draft == 'draft4':
                raise SchemaError("Boolean schemas require draft6 or later")
            return TRUE_SCHEMA if json_type else FALSE_SCHEMA
        if not isinstance(json_type, dict):
            raise SchemaError(f"Invalid schema: {json_type!r}")

        # $ref overrides its siblings, including the id
        if isinstance(json_type.get('$ref'), str):
            return Ref.new(json_type['$ref'], base_uri)

        schema_id = json_type.get(self.id_keyword)
        if isinstance(schema_id, str):
            base_uri = urljoin(base_uri, schema_id) if base_uri else schema_id
        else:
            schema_id = None

        universal = self.convert_universal(json_type, base_uri)
        universal['id'] = schema_id
        converted = self.convert_family_keywords(json_type, base_uri)

        json_types = json_type.get('type')
        if isinstance(json_types, str):
            json_types = [json_types]

        if json_types is not None:
            for name in json_types:
                if name not in _JSON_TYPES:
                    raise SchemaError(f"Unknown type {name!r}")
            if len(json_types) == 1:
                family, _ = _JSON_TYPES[json_types[0]]
                unused = {keyword: value for keyword, value in converted.items()
                          if family is None or keyword not in _FAMILY_KEYWORDS[family]}
                if unused:
                    universal['data'] = {**(universal.get('data') or {}), **unused}
                return self.type_to_schema(json_types[0], converted, universal)
            variants = [self.type_to_schema(name, converted) for name in json_types]
            return self.wrap(variants, universal, converted)

        families = [family for family in _UNTYPED_FAMILIES
                    if any(keyword in converted for keyword in _FAMILY_KEYWORDS[family])]
        if not families:
            return AnySchema(**universal)
        # values of other types pass the type-specific keywords unchecked
        if len(families) == 1:
            family = families[0]
            return _UNTYPED_FAMILIES[family](lenient=True, **self.family_fields(family, converted), **universal)
        variants = [_UNTYPED_FAMILIES[family](lenient=True, **self.family_fields(family, converted))
                    for family in families]
        universal['all_of'] = variants + universal.get('all_of', [])
        universal['data'] = {**(universal.get('data') or {}), **converted}
        return AnySchema(**universal)

    def type_to_schema(self, name: str, converted: Dict[str, Any],
                       universal: Optional[Dict[str, Any]] = None) -> Any:
        """Builds the variant for one JSON type name."""
        family, schema_class = _JSON_TYPES[name]
        kwargs = dict(universal or {})
        kwargs.update(self.family_fields(family, converted))
        if name == 'integer' and self.draft != 'draft4':
            # from draft6 on, any number with a zero fractional part is an integer
            schema_class = NumberSchema
            kwargs['as_'] = 'integer'
            multiple_of = kwargs.get('multiple_of')
            if multiple_of is None:
                kwargs['multiple_of'] = 1
            elif isinstance(multiple_of, float) and not multiple_of.is_integer():
                kwargs['all_of'] = [NumberSchema(multiple_of=1, as_='integer')] + list(kwargs.get('all_of') or [])
        return schema_class(**kwargs)

    def convert_universal(self, json_type: dict, base_uri: Optional[str]) -> Dict[str, Any]:
        """Converts enum, const, composition keywords and extension data."""
        universal: Dict[str, Any] = {}
        if 'enum' in json_type:
            universal['enum'] = list(json_type['enum'])
        if 'const' in json_type and self.draft != 'draft4':
            if 'enum' in universal:
                universal['all_of'] = [AnySchema(enum=[json_type['const']])]
            else:
                universal['enum'] = [json_type['const']]
        if 'not' in json_type:
            universal['not_'] = self.json_type_to_schema(json_type['not'], base_uri)
        for keyword, name in _COMPOSITION_KEYWORDS.items():
            if keyword in json_type:
                branches = [self.json_type_to_schema(branch, base_uri) for branch in json_type[keyword]]
                universal[name] = universal.get(name, []) + branches

        data: Dict[str, Any] = {}
        known = {'$schema', '$ref', self.id_keyword, 'type', 'enum', 'const', 'not'}
        known.update(_COMPOSITION_KEYWORDS)
        for family_keywords in _FAMILY_KEYWORDS.values():
            known.update(family_keywords)
        for keyword, value in json_type.items():
            if keyword in known:
                continue
            if keyword == 'definitions' and isinstance(value, dict):
                data[keyword] = {name: self.json_type_to_schema(definition, base_uri)
                                 for name, definition in value.items()}
            elif keyword in _UNENFORCED_SCHEMA_KEYWORDS and isinstance(value, (dict, bool)) \
                    and self.draft != 'draft4':
                logger.debug("Keyword %s is kept but not enforced", keyword)
                data[keyword] = self.json_type_to_schema(value, base_uri)
            elif isinstance(value, dict) and keyword not in _LITERAL_KEYWORDS:
                # may be the target of a $ref
                try:
                    data[keyword] = self.json_type_to_schema(value, base_uri)
                except SchemaError:
                    logger.debug("Keyword %s does not hold a schema", keyword)
                    data[keyword] = value
            else:
                data[keyword] = value
        if data:
            universal['data'] = data
        return universal

    def convert_family_keywords(self, json_type: dict, base_uri: Optional[str]) -> Dict[str, Any]:
        """Converts the type-specific keywords present in json_type."""
        converted: Dict[str, Any] = {}
        for family_keywords in _FAMILY_KEYWORDS.values():
            for keyword in family_keywords:
                if keyword in json_type:
                    converted[keyword] = json_type[keyword]

        if 'items' in converted:
            items = converted['items']
            if isinstance(items, list):
                converted['items'] = [self.json_type_to_schema(item, base_uri) for item in items]
            else:
                converted['items'] = self.json_type_to_schema(items, base_uri)
        for keyword in ('additionalItems', 'additionalProperties'):
            if isinstance(converted.get(keyword), dict):
                converted[keyword] = self.json_type_to_schema(converted[keyword], base_uri)
        for keyword in ('properties', 'patternProperties'):
            if keyword in converted:
                converted[keyword] = {key: self.json_type_to_schema(value, base_uri)
                                      for key, value in converted[keyword].items()}
        if 'dependencies' in converted:
            converted['dependencies'] = {
                key: value if isinstance(value, list) else self.json_type_to_schema(value, base_uri)
                for key, value in converted['dependencies'].items()}
        return converted

    @staticmethod
    def family_fields(family: Optional[str], converted: Dict[str, Any]) -> Dict[str, Any]:
        """Selects the converted keywords of one family as schema fields."""
        if family is None:
            return {}
        return {name: converted[keyword] for keyword, name in _FAMILY_KEYWORDS[family].items()
                if keyword in converted}

    @staticmethod
    def wrap(variants: List[Any], universal: Dict[str, Any], converted: Dict[str, Any]) -> AnySchema:
        """Combines alternative variants into an AnySchema.

        The type-specific keywords are also kept in data so that JSON
        pointers into them still resolve.
        """
        universal = dict(universal)
        if 'any_of' in universal:
            universal['all_of'] = [AnySchema(any_of=variants)] + universal.get('all_of', [])
        else:
            universal['any_of'] = variants
        data = dict(universal.get('data') or {})
        data.update(converted)
        universal['data'] = data
        return AnySchema(**universal)


def convert_json_schema(document: Any, draft: Optional[str] = None,
                        remotes: Optional[Mapping[str, Any]] = None,
                        base_uri: Optional[str] = None) -> Root:
    """
    Convert a JSON Schema document to a root schema graph.

    Args:
        document: The parsed JSON Schema document
        draft: 'draft4', 'draft6' or 'draft7', detected from $schema if not provided
        remotes: Other JSON Schema documents by URI, referenced from document
        base_uri: The URI the document was retrieved from

    Returns:
        The root graph, ready for validation.
    """
    if draft is None:
        draft = detect_draft(document)
    converter = JsonToXSchemaConverter(draft)
    root_id = converter.document_id(document, base_uri)
    schema = converter.json_type_to_schema(document, root_id)

    remote_schemas = {}
    for uri, remote in (remotes or {}).items():
        remote_draft = detect_draft(remote) if isinstance(remote, dict) and '$schema' in remote else draft
        remote_converter = JsonToXSchemaConverter(remote_draft)
        remote_id = urldefrag(uri).url
        remote_schemas[remote_id] = remote_converter.json_type_to_schema(
            remote, remote_converter.document_id(remote, remote_id))
    return build_root(schema, id=root_id, remotes=remote_schemas)


def convert_json_schema_file(json_schema_file_path: str, draft: Optional[str] = None) -> Root:
    """Convert a JSON Schema file to a root schema graph."""
    with open(json_schema_file_path, 'r', encoding='utf-8') as f:
        document = json.load(f)
    return convert_json_schema(document, draft=draft)

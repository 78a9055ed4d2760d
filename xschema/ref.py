"""
References and their resolution.

A Ref stands in for a schema node that lives elsewhere in the schema graph:
either at a JSON pointer inside the current root ('#/definitions/a') or at an
absolute URI, possibly in another root document. The Root holds the schema
tree together with an index from absolute identifiers to nodes and roots,
built once by build_root and read-only afterwards.
"""

import logging
import re
from dataclasses import dataclass, field, fields, replace
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
from urllib.parse import unquote, urldefrag, urljoin

import jsonpointer
from jsonpointer import JsonPointerException

from xschema.exceptions import CircularRefError, RefError
from xschema.schema import Schema, Symbol, FALSE_SCHEMA, TRUE_SCHEMA

logger = logging.getLogger(__name__)

_MISSING = object()
_CAMEL_BOUNDARY = re.compile(r'(?<!^)(?=[A-Z])')
_RESERVED_NAMES = {'not': 'not_', 'as': 'as_'}


@dataclass(frozen=True)
class Ref:
    """
    A reference to another schema node.

    Attributes:
        pointer: The reference as written, e.g. '#/definitions/a' or 'item.json#/b'
        uri: The absolute URI of the target; None for root-relative pointers
    """
    pointer: str
    uri: Optional[str] = None

    def __post_init__(self) -> None:
        if self.pointer.startswith('#') and self.uri is not None:
            object.__setattr__(self, 'uri', None)

    @classmethod
    def new(cls, pointer: str, base_uri: Optional[str] = None) -> 'Ref':
        """
        Creates a reference, qualifying non-fragment pointers with base_uri.

        Args:
            pointer: The reference string
            base_uri: The URI of the enclosing schema resource, if known

        Returns:
            The reference.
        """
        if pointer.startswith('#'):
            return cls(pointer)
        return cls(pointer, urljoin(base_uri, pointer) if base_uri else pointer)


@dataclass(frozen=True, eq=False)
class Root:
    """
    A schema document together with the index of its identified nodes.

    Attributes:
        schema: The top-level schema node
        id: The absolute URI of the document, if any
        refs: Absolute identifier -> schema node or Root
    """
    schema: Any
    id: Optional[str] = None
    refs: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True)
class Context:
    """
    Resolution context of one validation path.

    Attributes:
        root: The root against which pointers are resolved
        depth: Number of references resolved on the current path
        active: (root, reference, value) entries open on the current path
    """
    root: Root
    depth: int = 0
    active: Tuple[Tuple[int, str, int], ...] = ()


def build_root(schema: Any, id: Optional[str] = None,
               remotes: Optional[Mapping[str, Union[Schema, Root]]] = None) -> Root:
    """
    Builds a root graph and indexes every node carrying an id.

    Args:
        schema: The top-level schema node
        id: The absolute URI of the document
        remotes: Other documents by URI, as schema nodes or prepared roots

    Returns:
        The root. Roots created here for remote schema nodes share its index.
    """
    index: Dict[str, Any] = {}
    refs = MappingProxyType(index)
    root = Root(schema, id=id, refs=refs)
    if id:
        index[urldefrag(id).url] = root
    _index_ids(schema, id, index, is_root=True)
    for uri, remote in (remotes or {}).items():
        uri = urldefrag(uri).url
        if not isinstance(remote, Root):
            remote_root = Root(remote, id=uri, refs=refs)
            _index_ids(remote, uri, index, is_root=True)
            remote = remote_root
        index.setdefault(uri, remote)
    logger.debug("Built root %s with %d indexed references", id or '<anonymous>', len(index))
    return root


def as_root(schema: Any) -> Root:
    """Returns schema if it is a Root, else builds one around it."""
    if isinstance(schema, Root):
        return schema
    return build_root(schema, id=getattr(schema, 'id', None))


def _index_ids(node: Any, base_uri: Optional[str], index: Dict[str, Any], is_root: bool = False) -> None:
    if not isinstance(node, Schema):
        return
    if node.id and not is_root:
        uri = urljoin(base_uri, node.id) if base_uri else node.id
        index.setdefault(uri, node)
        if node.id.startswith('#'):
            index.setdefault(node.id, node)
        base_uri = uri
    for child in node.subschemas():
        _index_ids(child, base_uri, index)


def resolve(ref: Ref, context: Context) -> Tuple[Any, Context]:
    """
    Resolves a reference to a schema node, following chained references.

    Args:
        ref: The reference
        context: The current resolution context

    Returns:
        A tuple of the schema node and the context to validate it in; the
        context holds another root if the reference left the current document.

    Raises:
        RefError: If a reference in the chain cannot be resolved.
        CircularRefError: If the chain leads back to a reference already seen.
    """
    seen: List[Tuple[int, str]] = []
    node: Any = ref
    while isinstance(node, Ref):
        key = (id(context.root), node.uri or node.pointer)
        if key in seen:
            raise CircularRefError([k for _, k in seen] + [key[1]])
        seen.append(key)
        node, context = _get(node, context)
    return node, context


def _get(ref: Ref, context: Context) -> Tuple[Any, Context]:
    root = context.root
    if ref.uri is None:
        if ref.pointer == '#' or ref.pointer.startswith('#/'):
            return _fetch_by_path(root.schema, _to_path(ref.pointer[1:], ref), ref), context
        target = root.refs.get(ref.pointer)
        if target is None:
            raise RefError(ref.pointer)
        return _enter(target, [], ref, context)

    target = root.refs.get(ref.uri)
    path: List[str] = []
    if target is None:
        document, fragment = urldefrag(ref.uri)
        target = root.refs.get(document)
        if target is None:
            raise RefError(ref.pointer, ref.uri)
        path = _to_path(fragment, ref)
    return _enter(target, path, ref, context)


def _enter(target: Any, path: List[str], ref: Ref, context: Context) -> Tuple[Any, Context]:
    if isinstance(target, Root):
        node = _fetch_by_path(target.schema, path, ref)
        if target is not context.root:
            logger.debug("Reference %s switches root to %s", ref.uri or ref.pointer, target.id)
            context = replace(context, root=target)
        return node, context
    return _fetch_by_path(target, path, ref), context


def _to_path(fragment: str, ref: Ref) -> List[str]:
    if not fragment:
        return []
    try:
        parts = jsonpointer.JsonPointer(fragment).parts
    except JsonPointerException as e:
        raise RefError(ref.pointer, ref.uri, message=f"Invalid JSON pointer {fragment!r}: {e}") from e
    return [unquote(part) for part in parts]


def _fetch_by_path(node: Any, path: List[str], ref: Ref) -> Any:
    for key in path:
        node = _child(node, key)
        if node is _MISSING:
            raise RefError(ref.pointer, ref.uri)
    if node is True:
        return TRUE_SCHEMA
    if node is False:
        return FALSE_SCHEMA
    if not isinstance(node, (Schema, Ref)):
        raise RefError(ref.pointer, ref.uri,
                       message=f"Reference {ref.uri or ref.pointer} does not point to a schema")
    return node


def _attribute_name(key: str) -> str:
    if key in _RESERVED_NAMES:
        return _RESERVED_NAMES[key]
    return _CAMEL_BOUNDARY.sub('_', key).lower()


def _child(node: Any, key: str) -> Any:
    if isinstance(node, Schema):
        name = _attribute_name(key)
        if name in {f.name for f in fields(node) if f.init}:
            value = getattr(node, name)
            if value is not None:
                return value
        if node.data is not None:
            return _child(node.data, key)
        return _MISSING
    if isinstance(node, Mapping):
        if key in node:
            return node[key]
        return node.get(Symbol(key), _MISSING)
    if isinstance(node, (list, tuple)):
        if key.isdigit() and int(key) < len(node):
            return node[int(key)]
        return _MISSING
    return _MISSING

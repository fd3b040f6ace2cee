"""
Normalized, indexable view of a single HTTPRoute.

Every entry is keyed by the string form of a :class:`Name` that records its
position in the route: parent reference index, rule index and match, filter
or backendRef index. Parent level data (parentRefs, hostnames and control
plane references) is keyed at the parent reference level only, and lookups
with deeper names are normalized down to that level.
"""
from hybridgateway import settings
from hybridgateway.metadata import strip_path

RULE_PREFIX = 'http'


class Name(object):
    """Index addressed name: ``prefix.namespace.name[.index...]``."""

    def __init__(self, prefix, namespace, name, indexes=None):
        self.prefix = prefix
        self.namespace = namespace
        self.name = name
        self.indexes = list(indexes or [])

    def _index(self, position):
        if len(self.indexes) > position:
            return self.indexes[position]
        return -1

    @property
    def parent_ref_index(self):
        return self._index(0)

    @property
    def rule_index(self):
        return self._index(1)

    @property
    def match_index(self):
        return self._index(2)

    # filters and backendRefs sit at the same depth as matches
    filter_index = match_index
    backend_ref_index = match_index

    def child(self, index):
        return Name(self.prefix, self.namespace, self.name, self.indexes + [index])

    def truncate(self, depth):
        return Name(self.prefix, self.namespace, self.name, self.indexes[:depth])

    def __str__(self):
        suffix = ''.join('.{}'.format(index) for index in self.indexes)
        full = '{}.{}.{}{}'.format(self.prefix, self.namespace, self.name, suffix)
        if len(full) <= settings.MAX_NAME_LENGTH:
            return full

        # the indexes are kept verbatim, the named segments share the rest
        available = settings.MAX_NAME_LENGTH - len(suffix) - 2
        prefix = self.prefix[:max(available // 3, 1)]
        remaining = available - len(prefix)
        namespace_budget = remaining // 2
        name_budget = remaining - namespace_budget
        if len(self.namespace) < namespace_budget:
            name_budget += namespace_budget - len(self.namespace)
        elif len(self.name) < name_budget:
            namespace_budget += name_budget - len(self.name)
        return '{}.{}.{}{}'.format(
            prefix, self.namespace[:namespace_budget], self.name[:name_budget], suffix)

    def __repr__(self):
        return 'Name({!r})'.format(str(self))

    def __eq__(self, other):
        return isinstance(other, Name) and str(self) == str(other)

    def __hash__(self):
        return hash(str(self))


class HashName(object):
    """Content addressed name: ``prefix.namespace.hash``."""

    def __init__(self, prefix, namespace, hash_value):
        self.prefix = prefix
        self.namespace = namespace
        self.hash = hash_value

    def __str__(self):
        full = '{}.{}.{}'.format(self.prefix, self.namespace, self.hash)
        if len(full) <= settings.MAX_NAME_LENGTH:
            return full

        available = settings.MAX_NAME_LENGTH - len(self.hash) - 2
        prefix = self.prefix[:max(available // 2, 1)]
        namespace = self.namespace[:available - len(prefix)]
        return '{}.{}.{}'.format(prefix, namespace, self.hash)

    def __repr__(self):
        return 'HashName({!r})'.format(str(self))


def name_from_route(route, *indexes, prefix=RULE_PREFIX):
    metadata = route['metadata']
    return Name(prefix, metadata['namespace'], metadata['name'], indexes)


class Rule(object):

    def __init__(self, name, rule):
        self.name = name
        self.rule = rule
        self.matches = {}
        self.filters = {}
        self.backend_refs = {}

    @staticmethod
    def _ordered(entries):
        return [entries[key] for key in sorted(entries, key=lambda key: entries[key][0].indexes)]

    def ordered_matches(self):
        return [value for _, value in self._ordered(self.matches)]

    def ordered_filters(self):
        return [value for _, value in self._ordered(self.filters)]

    def ordered_backend_refs(self):
        return [value for _, value in self._ordered(self.backend_refs)]

    def __str__(self):
        return str(self.name)


class HTTPRouteRepresentation(object):

    def __init__(self, namespace, name, strip_path=True):
        self.namespace = namespace
        self.name = name
        self.strip_path = strip_path
        self.rules = {}
        self.parent_refs = {}
        self.hostnames = {}
        self.control_plane_refs = {}

    def _rule(self, name):
        rule_name = name.truncate(2)
        key = str(rule_name)
        if key not in self.rules:
            self.rules[key] = Rule(rule_name, {})
        return self.rules[key]

    def add_rule(self, name, rule):
        self._rule(name).rule = rule

    def add_match(self, name, match):
        self._rule(name).matches[str(name)] = (name, match)

    def add_filter(self, name, route_filter):
        self._rule(name).filters[str(name)] = (name, route_filter)

    def add_backend_ref(self, name, backend_ref):
        self._rule(name).backend_refs[str(name)] = (name, backend_ref)

    def add_parent_ref(self, name, parent_ref):
        self.parent_refs[str(name.truncate(1))] = parent_ref

    def add_hostnames(self, name, hostnames):
        self.hostnames[str(name.truncate(1))] = list(hostnames)

    def add_control_plane_ref(self, name, cp_ref):
        self.control_plane_refs[str(name.truncate(1))] = cp_ref

    @staticmethod
    def _parent_key(name):
        return str(name.truncate(1)) if name is not None else None

    def get_parent_ref_by_name(self, name):
        return self.parent_refs.get(self._parent_key(name))

    def get_hostnames_by_name(self, name):
        return self.hostnames.get(self._parent_key(name))

    def get_control_plane_ref_by_name(self, name):
        return self.control_plane_refs.get(self._parent_key(name))

    def ordered_rules(self):
        return [self.rules[key] for key in sorted(self.rules, key=lambda key: self.rules[key].name.indexes)]


def build_ir(route):
    """Build the intermediate representation of an HTTPRoute manifest."""
    metadata = route['metadata']
    spec = route.get('spec', {})
    ir = HTTPRouteRepresentation(
        metadata['namespace'], metadata['name'],
        strip_path=strip_path(metadata.get('annotations')))

    for p, parent_ref in enumerate(spec.get('parentRefs') or []):
        ir.add_parent_ref(name_from_route(route, p), parent_ref)
        for r, rule in enumerate(spec.get('rules') or []):
            rule_name = name_from_route(route, p, r)
            ir.add_rule(rule_name, rule)
            for m, match in enumerate(rule.get('matches') or []):
                ir.add_match(rule_name.child(m), match)
            for f, route_filter in enumerate(rule.get('filters') or []):
                ir.add_filter(rule_name.child(f), route_filter)
            for b, backend_ref in enumerate(rule.get('backendRefs') or []):
                ir.add_backend_ref(rule_name.child(b), backend_ref)
    return ir

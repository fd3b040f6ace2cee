"""
Deterministic names for the Kong objects generated from HTTPRoutes.

Every name is derived only from the content that determines the object's
configuration, so independent translation passes (possibly for different
routes) converge on the same object when they need the same thing.
"""
import hashlib
import json

from hybridgateway import settings
from hybridgateway.intermediate import HashName

HTTP_PREFIX = 'http'
CP_PREFIX = 'cp'
PLUGIN_PREFIX = 'pl'
CERTIFICATE_PREFIX = 'cert'


def hash_object(*values):
    """Return a short stable hash of JSON serializable values."""
    payload = json.dumps(values, sort_keys=True, separators=(',', ':'))
    return hashlib.sha256(payload.encode('utf-8')).hexdigest()[:8]


def new_name(*elements, namespace=None):
    """
    Join elements with ".", falling back to a hashed name when too long.

    Names of namespaced objects fall back to ``hgw.<namespace>.<hash>``.
    """
    joined = '.'.join(str(element) for element in elements)
    if len(joined) <= settings.MAX_NAME_LENGTH:
        return joined
    if namespace:
        return str(HashName(settings.NAMEGEN_PREFIX, namespace, hash_object(joined)))
    return '{}.{}'.format(settings.NAMEGEN_PREFIX, hash_object(joined))


def canonical_backend_ref(backend_ref, namespace):
    """Fill in the defaults of a backendRef so equal refs serialize equally."""
    return {
        'group': backend_ref.get('group') or '',
        'kind': backend_ref.get('kind') or 'Service',
        'name': backend_ref.get('name'),
        'namespace': backend_ref.get('namespace') or namespace,
        'port': backend_ref.get('port'),
        'weight': backend_ref.get('weight', 1),
    }


def backend_refs_hash(rule, namespace):
    refs = [canonical_backend_ref(ref, namespace) for ref in rule.get('backendRefs') or []]
    refs.sort(key=lambda ref: json.dumps(ref, sort_keys=True))
    return hash_object(refs)


def control_plane_hash(cp_ref):
    return CP_PREFIX + hash_object(cp_ref)


def upstream_name(cp_ref, rule, namespace):
    return new_name(
        control_plane_hash(cp_ref), backend_refs_hash(rule, namespace), namespace=namespace)


def service_name(cp_ref, rule, namespace):
    return new_name(
        HTTP_PREFIX, control_plane_hash(cp_ref), backend_refs_hash(rule, namespace),
        namespace=namespace)


def route_name(route, cp_ref, rule):
    metadata = route['metadata']
    return new_name(
        HTTP_PREFIX,
        '{}-{}'.format(metadata['namespace'], metadata['name']),
        control_plane_hash(cp_ref),
        hash_object(rule.get('matches') or []),
        namespace=metadata['namespace'],
    )


def plugin_name(route_filter, *context):
    """Name a plugin after its filter and anything else its config depends on."""
    return PLUGIN_PREFIX + hash_object(route_filter, *context)


def plugin_binding_name(route_id, plugin_id):
    if not route_id:
        return plugin_id
    return new_name(route_id, plugin_id)


def target_name(upstream_id, endpoint, port, backend_ref, namespace):
    """Name a target after its upstream, address and the canonical backendRef behind it."""
    backend_ref = canonical_backend_ref(backend_ref, namespace)
    return new_name(upstream_id, hash_object(endpoint, port, backend_ref), namespace=namespace)


def certificate_name(gateway_name, listener_port):
    return new_name(CERTIFICATE_PREFIX, gateway_name, listener_port)

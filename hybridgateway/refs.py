"""
Resolve what an HTTPRoute's parentRefs point at: the Gateway, its
listeners and the Konnect control plane the Gateway is attached to.
"""
import logging

from hybridgateway import settings
from hybridgateway.exceptions import KubeHTTPException, RefError
from hybridgateway.utils import listener_hostnames

logger = logging.getLogger(__name__)

KONNECT_GROUP = 'konnect.konghq.com'
CONTROL_PLANE_REF_TYPE = 'konnectNamespacedRef'


def get_object(resource, namespace, name):
    """Fetch an object, returning None when it does not exist."""
    try:
        return resource.get(namespace, name).json()
    except KubeHTTPException as e:
        if e.response.status_code == 404:
            return None
        raise


def list_objects(resource, namespace, **kwargs):
    return resource.get(namespace, **kwargs).json().get('items', [])


def is_gateway_ref(parent_ref):
    return ((parent_ref.get('group') or settings.GATEWAY_GROUP) == settings.GATEWAY_GROUP and
            (parent_ref.get('kind') or 'Gateway') == 'Gateway')


def get_supported_gateway(client, parent_ref, namespace):
    """
    Return the Gateway a parentRef points at, or None when it is not a
    Gateway handled by this controller.
    """
    if not is_gateway_ref(parent_ref):
        return None

    gateway_namespace = parent_ref.get('namespace') or namespace
    gateway = get_object(client.gateways, gateway_namespace, parent_ref['name'])
    if gateway is None:
        client.log(namespace, 'Gateway {}/{} not found'.format(
            gateway_namespace, parent_ref['name']))
        return None

    class_name = gateway['spec'].get('gatewayClassName')
    gateway_class = get_object(client.gatewayclasses, None, class_name)
    if gateway_class is None:
        client.log(namespace, 'GatewayClass {} not found'.format(class_name))
        return None
    if gateway_class['spec'].get('controllerName') != settings.CONTROLLER_NAME:
        logger.debug('GatewayClass %s is not managed by %s', class_name, settings.CONTROLLER_NAME)
        return None
    return gateway


def konnect_extensions_for_gateway(client, gateway):
    metadata = gateway['metadata']
    gateway_class = get_object(client.gatewayclasses, None, gateway['spec'].get('gatewayClassName'))
    params = (gateway_class or {}).get('spec', {}).get('parametersRef')
    if not params or params.get('kind') != 'GatewayConfiguration':
        return []

    config_namespace = params.get('namespace') or metadata['namespace']
    config = get_object(client.gatewayconfigurations, config_namespace, params['name'])
    if config is None:
        return []

    extensions = []
    for ref in config.get('spec', {}).get('extensions') or []:
        if ref.get('group') != KONNECT_GROUP or ref.get('kind') != 'KonnectExtension':
            continue
        extension = get_object(
            client.konnectextensions, ref.get('namespace') or config_namespace, ref['name'])
        if extension is not None:
            extensions.append(extension)
    return extensions


def control_plane_ref_for_gateway(client, gateway):
    """
    Return the controlPlaneRef of the Konnect control plane backing a
    Gateway, or None when the Gateway is not attached to one.
    """
    extensions = konnect_extensions_for_gateway(client, gateway)
    if not extensions:
        return None
    if len(extensions) > 1:
        raise RefError('multiple KonnectExtensions found for a single Gateway, which is not supported')

    extension = extensions[0]
    cp_ref = extension.get('spec', {}).get('konnect', {}).get('controlPlane', {}).get('ref')
    if not cp_ref or cp_ref.get('type') != CONTROL_PLANE_REF_TYPE:
        return None

    extension_namespace = extension['metadata']['namespace']
    namespaced_ref = cp_ref.get(CONTROL_PLANE_REF_TYPE) or {}
    namespace = namespaced_ref.get('namespace') or extension_namespace
    if namespace != extension_namespace:
        raise RefError('KonnectExtension {}/{} references a control plane in namespace {}, '
                       'cross-namespace references are not supported'.format(
                           extension_namespace, extension['metadata']['name'], namespace))

    if get_object(client.konnectgatewaycontrolplanes, namespace, namespaced_ref.get('name')) is None:
        return None

    return {
        'type': CONTROL_PLANE_REF_TYPE,
        CONTROL_PLANE_REF_TYPE: {'name': namespaced_ref['name']},
    }


def control_plane_ref_for_parent_ref(client, route, parent_ref):
    gateway = get_supported_gateway(client, parent_ref, route['metadata']['namespace'])
    if gateway is None:
        return None
    return control_plane_ref_for_gateway(client, gateway)


def listeners_for_parent_ref(client, route, parent_ref):
    """Listeners of the parent Gateway selected by sectionName and port."""
    if not is_gateway_ref(parent_ref):
        return []
    namespace = parent_ref.get('namespace') or route['metadata']['namespace']
    gateway = get_object(client.gateways, namespace, parent_ref['name'])
    if gateway is None:
        return []

    listeners = []
    for listener in gateway['spec'].get('listeners') or []:
        if parent_ref.get('sectionName') and listener.get('name') != parent_ref['sectionName']:
            continue
        if parent_ref.get('port') and listener.get('port') != parent_ref['port']:
            continue
        listeners.append(listener)
    return listeners


def hostnames_for_listeners(route, listeners):
    """
    Hostnames the route serves through the given listeners.

    Returns None when no listener accepts the route. An empty list means
    every hostname is accepted.
    """
    route_hostnames = route.get('spec', {}).get('hostnames') or []
    accepted = None
    for listener in listeners:
        if not listener.get('hostname'):
            return list(route_hostnames)
        hostnames = listener_hostnames(listener['hostname'], route_hostnames)
        if hostnames:
            accepted = accepted or []
            accepted.extend(h for h in hostnames if h not in accepted)
    return accepted


def reference_grant_permits(client, from_ref, to_ref):
    """
    Whether a ReferenceGrant in the target namespace allows the reference.

    ``from_ref`` holds group, kind and namespace of the referring object,
    ``to_ref`` holds group, kind, namespace and name of the referent.
    """
    for grant in list_objects(client.referencegrants, to_ref['namespace']):
        spec = grant.get('spec', {})
        from_ok = any(
            entry.get('group', '') == from_ref['group'] and
            entry.get('kind') == from_ref['kind'] and
            entry.get('namespace') == from_ref['namespace']
            for entry in spec.get('from') or []
        )
        to_ok = any(
            entry.get('group', '') == to_ref['group'] and
            entry.get('kind') == to_ref['kind'] and
            entry.get('name', to_ref['name']) == to_ref['name']
            for entry in spec.get('to') or []
        )
        if from_ok and to_ok:
            return True
    return False

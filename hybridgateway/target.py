"""
Resolve HTTPRoute backendRefs to the endpoints Kong load balances over and
build one KongTarget per endpoint.
"""
from collections import namedtuple
import logging

from hybridgateway import namegen, settings
from hybridgateway.builder import KongTargetBuilder
from hybridgateway.refs import get_object, list_objects, reference_grant_permits
from hybridgateway.weight import BackendWeight, calculate_endpoint_weights

logger = logging.getLogger(__name__)

ValidBackendRef = namedtuple(
    'ValidBackendRef', ['backend_ref', 'service', 'service_port', 'endpoints', 'target_port'])


def is_backend_ref_supported(backend_ref):
    return (backend_ref.get('group') or '') in ('', 'core') and \
        (backend_ref.get('kind') or 'Service') == 'Service'


def find_service_port(backend_ref, service):
    port = backend_ref.get('port')
    if port is None:
        return None
    for service_port in service['spec'].get('ports') or []:
        if service_port.get('port') == port:
            return service_port
    return None


def _port_matches(slice_port, service_port):
    return (slice_port.get('port') is not None and slice_port['port'] >= 0 and
            slice_port.get('protocol', 'TCP') == service_port.get('protocol', 'TCP') and
            slice_port.get('name', '') == service_port.get('name', ''))


def endpoint_slices_for_service(client, service):
    metadata = service['metadata']
    return list_objects(
        client.endpointslices, metadata['namespace'],
        labels={settings.METADATA['service-name']: metadata['name']})


def ready_endpoint_addresses(endpoint_slices, service_port):
    addresses = []
    for endpoint_slice in endpoint_slices:
        for slice_port in endpoint_slice.get('ports') or []:
            if not _port_matches(slice_port, service_port):
                continue
            for endpoint in endpoint_slice.get('endpoints') or []:
                if endpoint.get('conditions', {}).get('ready') is True:
                    addresses.extend(endpoint.get('addresses') or [])
    return addresses


def uses_fqdn(service, fqdn):
    return fqdn and service['spec'].get('clusterIP') != 'None'


def service_fqdn(service, cluster_domain):
    name = '{}.{}.svc'.format(service['metadata']['name'], service['metadata']['namespace'])
    if cluster_domain:
        name += '.' + cluster_domain
    return name


def resolve_service_endpoints(client, service, service_port, fqdn, cluster_domain):
    """Return the endpoint hosts of a Service, empty when it has none."""
    if uses_fqdn(service, fqdn):
        return [service_fqdn(service, cluster_domain)]
    if service['spec'].get('type') == 'ExternalName':
        external_name = service['spec'].get('externalName')
        return [external_name] if external_name else []
    return ready_endpoint_addresses(endpoint_slices_for_service(client, service), service_port)


def resolve_target_port(client, service, service_port, fqdn):
    if uses_fqdn(service, fqdn) or service['spec'].get('type') == 'ExternalName':
        return service_port['port']

    target_port = service_port.get('targetPort')
    if isinstance(target_port, int) and target_port > 0:
        return target_port

    for endpoint_slice in endpoint_slices_for_service(client, service):
        for slice_port in endpoint_slice.get('ports') or []:
            if _port_matches(slice_port, service_port) and slice_port['port'] > 0:
                return slice_port['port']
    return service_port['port']


def filter_valid_backend_refs(client, route, backend_refs, fqdn=False, cluster_domain=''):
    route_namespace = route['metadata']['namespace']
    valid = []
    for backend_ref in backend_refs:
        name = backend_ref.get('name')
        if not is_backend_ref_supported(backend_ref):
            client.log(route_namespace, 'skipping unsupported backendRef {}/{} {}'.format(
                backend_ref.get('group'), backend_ref.get('kind'), name))
            continue

        namespace = backend_ref.get('namespace') or route_namespace
        service = get_object(client.services, namespace, name)
        if service is None:
            client.log(route_namespace, 'skipping nonexistent Service {}/{}'.format(namespace, name))
            continue

        service_port = find_service_port(backend_ref, service)
        if service_port is None:
            client.log(route_namespace, 'skipping backendRef {}/{} with invalid port {}'.format(
                namespace, name, backend_ref.get('port')))
            continue

        if namespace != route_namespace:
            permitted = reference_grant_permits(
                client,
                {'group': settings.GATEWAY_GROUP, 'kind': 'HTTPRoute', 'namespace': route_namespace},
                {'group': '', 'kind': 'Service', 'namespace': namespace, 'name': name},
            )
            if not permitted:
                client.log(route_namespace, 'skipping backendRef {}/{} not permitted by '
                                            'a ReferenceGrant'.format(namespace, name))
                continue

        endpoints = resolve_service_endpoints(client, service, service_port, fqdn, cluster_domain)
        if not endpoints:
            logger.debug('skipping Service %s/%s without ready endpoints', namespace, name)
            continue

        valid.append(ValidBackendRef(
            backend_ref, service, service_port, endpoints,
            resolve_target_port(client, service, service_port, fqdn)))
    return valid


def _backend_key(valid_ref):
    metadata = valid_ref.service['metadata']
    return '{}/{}:{}'.format(metadata['namespace'], metadata['name'], valid_ref.service_port['port'])


def targets_for_backend_refs(client, route, backend_refs, parent_ref, upstream_name,
                             fqdn=False, cluster_domain=''):
    """Return a KongTarget builder for every ready endpoint behind the backendRefs."""
    valid = filter_valid_backend_refs(client, route, backend_refs, fqdn, cluster_domain)
    weights = calculate_endpoint_weights([
        BackendWeight(_backend_key(ref), ref.backend_ref.get('weight', 1), len(ref.endpoints))
        for ref in valid
    ])

    targets = []
    for ref in valid:
        for endpoint in ref.endpoints:
            name = namegen.target_name(
                upstream_name, endpoint, ref.target_port, ref.backend_ref,
                route['metadata']['namespace'])
            targets.append(
                KongTargetBuilder()
                .with_name(name)
                .with_namespace(route['metadata']['namespace'])
                .with_labels(route)
                .with_annotations(route, parent_ref)
                .with_upstream_ref(upstream_name)
                .with_target(endpoint, ref.target_port)
                .with_weight(weights[_backend_key(ref)])
                .with_owner(route)
            )
    logger.debug('%d of %d backendRefs resolved to %d targets',
                 len(valid), len(backend_refs), len(targets))
    return targets

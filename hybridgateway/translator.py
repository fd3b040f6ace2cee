"""
Compile HTTPRoutes and Gateways into Kong configuration objects.

The functions here never write to the cluster. For every object a rule
needs they derive its name, look it up, and hand back either a freshly
built object (to be created) or the existing one extended with the current
route (to be updated). Objects shared by several routes are therefore only
ever touched through their hybrid-routes annotation.
"""
import base64
import binascii
from collections import OrderedDict
from copy import deepcopy
import logging

from hybridgateway import namegen, plugin, settings
from hybridgateway.builder import (
    KongCertificateBuilder, KongPluginBindingBuilder, KongPluginBuilder, KongRouteBuilder,
    KongServiceBuilder, KongSNIBuilder, KongUpstreamBuilder)
from hybridgateway.exceptions import (
    BuildError, FilterConfigError, HybridGatewayError, InvalidRouteError,
    NamingCollisionError, RefError, TranslationError, UnsupportedFilterError)
from hybridgateway.intermediate import build_ir, name_from_route
from hybridgateway.metadata import gateways_annotation, routes_annotation
from hybridgateway.refs import (
    control_plane_ref_for_gateway, control_plane_ref_for_parent_ref, get_object,
    hostnames_for_listeners, listeners_for_parent_ref, reference_grant_permits)
from hybridgateway.schemas import HTTPROUTE_RULES_SCHEMA
from hybridgateway.target import targets_for_backend_refs
from hybridgateway.utils import (
    object_key, remove_owner_reference, set_owner_reference, validate_json)

logger = logging.getLogger(__name__)

DEFAULT_MATCH = {'path': {'type': 'PathPrefix', 'value': '/'}}

# top level fields carrying the configuration of a kind
CONTENT_FIELDS = {
    'KongPlugin': ('plugin', 'config'),
}


def build(builder):
    """Run a builder, tagging its errors with the kind and name being built."""
    name = builder.obj['metadata'].get('name')
    try:
        return builder.build()
    except BuildError as e:
        raise BuildError(
            ['{} {}: {}'.format(builder.kind, name, error) for error in e.errors]) from e


def reconcile(client, desired, owner, annotations=routes_annotation, exclusive=False):
    """
    Return the object to write for ``desired``.

    When nothing exists under the same name ``desired`` is returned as is.
    Otherwise the existing object is returned with the content of
    ``desired`` and ``owner`` added to its ownership record. With
    ``exclusive`` an object recorded for other owners only is a naming
    collision.
    """
    metadata = desired['metadata']
    existing = get_object(
        client.resource_for(desired['kind']), metadata.get('namespace'), metadata['name'])
    if existing is None:
        return desired

    identity = object_key(owner)
    owners = annotations.get_routes(existing)
    if exclusive and owners and identity not in owners:
        raise NamingCollisionError('{} {}/{} is already owned by {}'.format(
            desired['kind'], metadata.get('namespace'), metadata['name'], ','.join(owners)))

    updated = deepcopy(existing)
    for field in CONTENT_FIELDS.get(desired['kind'], ('spec', )):
        if field in desired:
            updated[field] = deepcopy(desired[field])
    annotations.append_route(updated, owner)
    # record the parent gateways next to the routes
    if annotations is routes_annotation:
        for gateway in gateways_annotation.get_routes(desired):
            gateways_annotation.append_route(updated, gateway)
    set_owner_reference(owner, updated)
    logger.debug('adopting existing %s %s for %s', desired['kind'], object_key(updated), identity)
    return updated


def _route_builder(builder, route, parent_ref, name):
    return builder \
        .with_name(name) \
        .with_namespace(route['metadata']['namespace']) \
        .with_labels(route) \
        .with_annotations(route, parent_ref) \
        .with_owner(route)


def upstream_for_rule(client, route, rule, parent_ref, cp_ref):
    name = namegen.upstream_name(cp_ref, rule, route['metadata']['namespace'])
    builder = _route_builder(KongUpstreamBuilder(), route, parent_ref, name) \
        .with_spec_name(name) \
        .with_control_plane_ref(cp_ref)
    return reconcile(client, build(builder), route)


def service_for_rule(client, route, rule, parent_ref, cp_ref):
    namespace = route['metadata']['namespace']
    name = namegen.service_name(cp_ref, rule, namespace)
    builder = _route_builder(KongServiceBuilder(), route, parent_ref, name) \
        .with_spec_name(name) \
        .with_spec_host(namegen.upstream_name(cp_ref, rule, namespace)) \
        .with_control_plane_ref(cp_ref)
    return reconcile(client, build(builder), route)


def uses_capture_group(filters):
    return any(plugin.uses_prefix_capture(route_filter) for route_filter in filters)


def route_for_rule(client, route, rule, parent_ref, cp_ref, hostnames,
                   strip_path=True, matches=None, filters=None):
    """
    Return the KongRoute of a rule.

    KongRoute names embed the owning route, so finding one recorded for a
    different HTTPRoute means two routes derived the same name.
    """
    matches = rule.get('matches') if matches is None else matches
    filters = rule.get('filters') if filters is None else filters
    name = namegen.route_name(route, cp_ref, rule)
    capture_group = uses_capture_group(filters or [])

    builder = _route_builder(KongRouteBuilder(), route, parent_ref, name) \
        .with_spec_name(name) \
        .with_hosts(hostnames) \
        .with_strip_path(strip_path) \
        .with_kong_service(namegen.service_name(cp_ref, rule, route['metadata']['namespace']))
    for match in matches or [DEFAULT_MATCH]:
        builder.with_http_route_match(match, capture_group)
    return reconcile(client, build(builder), route, exclusive=True)


def referenced_plugin(client, route_filter, namespace):
    """Return the existing KongPlugin an ExtensionRef filter points at."""
    ref = route_filter.get('extensionRef')
    if ref is None:
        raise FilterConfigError('ExtensionRef filter is missing')
    if ref.get('group') != settings.KONG_GROUP or ref.get('kind') != 'KongPlugin':
        raise UnsupportedFilterError(
            'unsupported ExtensionRef: {}/{}'.format(ref.get('group'), ref.get('kind')))

    kong_plugin = get_object(client.kongplugins, namespace, ref['name'])
    if kong_plugin is None:
        raise RefError('KongPlugin {}/{} referenced by ExtensionRef not found'.format(
            namespace, ref['name']))
    return kong_plugin


def plugin_for_filter(client, route, route_filter, rule, parent_ref):
    """
    Return ``(plugin, generated)`` for a filter.

    ExtensionRef filters reuse a KongPlugin that already exists, every other
    filter generates one.
    """
    if route_filter.get('type') == plugin.EXTENSION_REF:
        return referenced_plugin(client, route_filter, route['metadata']['namespace']), False

    context = ()
    if plugin.uses_prefix_capture(route_filter):
        context = (plugin.path_prefix_match_value(rule), )
    name = namegen.plugin_name(route_filter, *context)
    builder = _route_builder(KongPluginBuilder(), route, parent_ref, name) \
        .with_filter(route_filter, rule)
    return reconcile(client, build(builder), route), True


def binding_for_plugin(client, route, parent_ref, cp_ref, plugin_name,
                       route_name=None, service_name=None):
    name = namegen.plugin_binding_name(route_name or service_name, plugin_name)
    builder = _route_builder(KongPluginBindingBuilder(), route, parent_ref, name) \
        .with_plugin_ref(plugin_name) \
        .with_control_plane_ref(cp_ref)
    if route_name:
        builder.with_route_ref(route_name)
    else:
        builder.with_service_ref(service_name)
    return reconcile(client, build(builder), route)


def targets_for_rule(client, route, rule, parent_ref, cp_ref, fqdn=False, cluster_domain='',
                     backend_refs=None):
    backend_refs = rule.get('backendRefs') if backend_refs is None else backend_refs
    upstream = namegen.upstream_name(cp_ref, rule, route['metadata']['namespace'])
    builders = targets_for_backend_refs(
        client, route, backend_refs or [], parent_ref, upstream, fqdn, cluster_domain)
    return [reconcile(client, build(builder), route) for builder in builders]


def _object_id(obj):
    metadata = obj['metadata']
    return obj['kind'], metadata.get('namespace'), metadata['name']


class HTTPRouteConverter(object):
    """Translate one HTTPRoute into the Kong objects it needs."""

    def __init__(self, client, route, fqdn=None, cluster_domain=None):
        self.client = client
        self.route = route
        self.fqdn = settings.FQDN_MODE if fqdn is None else fqdn
        self.cluster_domain = settings.CLUSTER_DOMAIN if cluster_domain is None else cluster_domain
        self.ir = None
        self.output = OrderedDict()

    @property
    def namespace(self):
        return self.route['metadata']['namespace']

    def translate(self):
        """
        Fill the output store with the objects every rule needs.

        A failing rule is skipped and the other rules are still translated.
        The failures are raised together once every rule was attempted.
        """
        validate_json(self.route.get('spec', {}).get('rules'), HTTPROUTE_RULES_SCHEMA,
                      InvalidRouteError)
        self.ir = build_ir(self.route)
        self.add_control_plane_refs()
        self.add_hostnames()

        errors = []
        for rule in self.ir.ordered_rules():
            cp_ref = self.ir.get_control_plane_ref_by_name(rule.name)
            if cp_ref is None:
                continue
            hostnames = self.ir.get_hostnames_by_name(rule.name)
            if hostnames is None:
                continue
            try:
                self.translate_rule(rule, self.ir.get_parent_ref_by_name(rule.name), cp_ref, hostnames)
            except HybridGatewayError as e:
                self.client.log(self.namespace, 'skipping rule {}: {}'.format(rule, e), 'ERROR')
                errors.append(e)

        if errors:
            raise TranslationError(errors)
        return self.get_output_store()

    def add_control_plane_refs(self):
        for name, parent_ref in self._parent_refs():
            cp_ref = control_plane_ref_for_parent_ref(self.client, self.route, parent_ref)
            if cp_ref is None:
                logger.debug('parentRef %s of %s has no control plane', parent_ref,
                             object_key(self.route))
                continue
            self.ir.add_control_plane_ref(name, cp_ref)

    def add_hostnames(self):
        for name, parent_ref in self._parent_refs():
            listeners = listeners_for_parent_ref(self.client, self.route, parent_ref)
            hostnames = hostnames_for_listeners(self.route, listeners)
            if hostnames is not None:
                self.ir.add_hostnames(name, hostnames)

    def _parent_refs(self):
        for p, parent_ref in enumerate(self.route.get('spec', {}).get('parentRefs') or []):
            yield name_from_route(self.route, p), parent_ref

    def translate_rule(self, rule, parent_ref, cp_ref, hostnames):
        route, route_rule = self.route, rule.rule
        filters = rule.ordered_filters()
        objects = [
            upstream_for_rule(self.client, route, route_rule, parent_ref, cp_ref),
            service_for_rule(self.client, route, route_rule, parent_ref, cp_ref),
        ]
        service_name = objects[1]['metadata']['name']
        objects.extend(targets_for_rule(
            self.client, route, route_rule, parent_ref, cp_ref, self.fqdn, self.cluster_domain,
            backend_refs=rule.ordered_backend_refs()))

        kong_route = route_for_rule(
            self.client, route, route_rule, parent_ref, cp_ref, hostnames,
            strip_path=self.ir.strip_path, matches=rule.ordered_matches(), filters=filters)
        objects.append(kong_route)

        for route_filter in filters:
            kong_plugin, generated = plugin_for_filter(
                self.client, route, route_filter, route_rule, parent_ref)
            if generated:
                objects.append(kong_plugin)
            # response headers are rewritten on the way back, after the service
            if route_filter.get('type') == plugin.RESPONSE_HEADER_MODIFIER:
                target = {'service_name': service_name}
            else:
                target = {'route_name': kong_route['metadata']['name']}
            objects.append(binding_for_plugin(
                self.client, route, parent_ref, cp_ref, kong_plugin['metadata']['name'], **target))

        for obj in objects:
            self._store(obj)

    def _store(self, obj):
        key = _object_id(obj)
        stored = self.output.get(key)
        if stored is None:
            self.output[key] = obj
            return
        # the same KongRoute can be reached through several parents
        # and a route without hosts matches every host
        if obj['kind'] == 'KongRoute' and stored['spec'].get('hosts'):
            if obj['spec'].get('hosts'):
                hosts = stored['spec']['hosts']
                hosts.extend(h for h in obj['spec']['hosts'] if h not in hosts)
            else:
                del stored['spec']['hosts']
        gateways_annotation.set_routes(
            stored, gateways_annotation.get_routes(stored) + gateways_annotation.get_routes(obj))

    def get_output_store(self):
        return list(self.output.values())

    def handle_orphaned_resource(self, obj):
        """
        Release an object this route no longer needs.

        Returns ``(skip_delete, obj)``. The object may only be deleted when
        this route was the last one recorded on it; otherwise ``obj`` has
        been updated to drop this route and should be written back.
        """
        if not routes_annotation.get_routes(obj):
            return True, obj

        if routes_annotation.remove_route(obj, self.route):
            remove_owner_reference(self.route, obj)
        if routes_annotation.get_routes(obj):
            return True, obj
        return False, obj


def is_tls_secret_valid(secret):
    if secret.get('type') != 'kubernetes.io/tls':
        return False
    data = secret.get('data') or {}
    for key in ('tls.crt', 'tls.key'):
        try:
            value = base64.b64decode(data.get(key) or '', validate=True)
        except (binascii.Error, ValueError):
            return False
        if b'-----BEGIN' not in value:
            return False
    return True


class GatewayConverter(object):
    """Translate the TLS listeners of a Gateway into KongCertificates and KongSNIs."""

    def __init__(self, client, gateway):
        self.client = client
        self.gateway = gateway
        self.control_plane_ref = None
        self.output = OrderedDict()

    @property
    def namespace(self):
        return self.gateway['metadata']['namespace']

    def translate(self):
        self.control_plane_ref = control_plane_ref_for_gateway(self.client, self.gateway)
        if self.control_plane_ref is None:
            raise RefError('Gateway {} does not reference a control plane'.format(
                object_key(self.gateway)))

        errors = []
        for listener in self.gateway['spec'].get('listeners') or []:
            if listener.get('protocol') not in ('HTTPS', 'TLS'):
                continue
            for cert_ref in (listener.get('tls') or {}).get('certificateRefs') or []:
                try:
                    self.process_listener_certificate(listener, cert_ref)
                except HybridGatewayError as e:
                    errors.append(e)

        if errors:
            raise TranslationError(errors)
        return self.get_output_store()

    def process_listener_certificate(self, listener, cert_ref):
        if (cert_ref.get('group') or '') not in ('', 'core') or \
                (cert_ref.get('kind') or 'Secret') != 'Secret':
            logger.debug('skipping certificateRef %s of listener %s', cert_ref, listener.get('name'))
            return

        secret_namespace = cert_ref.get('namespace') or self.namespace
        secret_name = cert_ref['name']
        if secret_namespace != self.namespace and not reference_grant_permits(
                self.client,
                {'group': settings.GATEWAY_GROUP, 'kind': 'Gateway', 'namespace': self.namespace},
                {'group': '', 'kind': 'Secret', 'namespace': secret_namespace, 'name': secret_name}):
            self.client.log(self.namespace, 'skipping Secret {}/{} not permitted by a '
                                            'ReferenceGrant'.format(secret_namespace, secret_name))
            return

        secret = get_object(self.client.secrets, secret_namespace, secret_name)
        if secret is None:
            logger.debug('skipping missing Secret %s/%s', secret_namespace, secret_name)
            return
        if not is_tls_secret_valid(secret):
            raise RefError('invalid TLS secret {}/{} for listener {}'.format(
                secret_namespace, secret_name, listener.get('name')))

        name = namegen.certificate_name(self.gateway['metadata']['name'], listener['port'])
        certificate = build(
            KongCertificateBuilder()
            .with_name(name)
            .with_namespace(self.namespace)
            .with_secret_ref(secret_name, secret_namespace)
            .with_control_plane_ref(self.control_plane_ref)
            .with_labels(self.gateway, listener)
            .with_annotations(self.gateway)
            .with_owner(self.gateway)
        )
        sni = build(
            KongSNIBuilder()
            .with_name(name)
            .with_namespace(self.namespace)
            .with_sni_name(listener.get('hostname') or '*')
            .with_certificate_ref(name)
            .with_labels(self.gateway, listener)
            .with_annotations(self.gateway)
            .with_owner(self.gateway)
        )
        for obj in (certificate, sni):
            obj = reconcile(self.client, obj, self.gateway, annotations=gateways_annotation)
            self.output[_object_id(obj)] = obj

    def get_output_store(self):
        return list(self.output.values())

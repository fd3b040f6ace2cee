"""
Labels, annotations and the shared object backreference protocol.

Generated objects can be shared by several HTTPRoutes. Every route that
needs an object records itself in the object's hybrid-routes annotation,
and the object may only be garbage collected once that annotation is gone.
"""
import logging

from hybridgateway import settings
from hybridgateway.utils import object_key

logger = logging.getLogger(__name__)


def parent_gateway_key(route, parent_ref):
    namespace = (parent_ref or {}).get('namespace') or route['metadata']['namespace']
    return '{}/{}'.format(namespace, (parent_ref or {}).get('name', ''))


def build_labels(owner):
    """Labels mapping a generated object back to the object it came from."""
    metadata = owner['metadata']
    return {
        settings.METADATA['managed-by']: settings.MANAGED_BY[owner['kind']],
        settings.METADATA['managed-by-name']: metadata['name'],
        settings.METADATA['managed-by-namespace']: metadata['namespace'],
    }


def build_annotations(route, parent_ref):
    return {
        settings.METADATA['hybrid-routes']: object_key(route),
        settings.METADATA['hybrid-gateways']: parent_gateway_key(route, parent_ref),
    }


def build_gateway_annotations(gateway):
    return {settings.METADATA['hybrid-gateways']: object_key(gateway)}


def strip_path(annotations):
    """Read the strip-path annotation, which defaults to true."""
    value = (annotations or {}).get(settings.METADATA['strip-path'])
    if value is None:
        return True
    value = value.strip().lower()
    if value in ('false', 'f', '0'):
        return False
    return True


def route_identity(route):
    if isinstance(route, str):
        return route
    return object_key(route)


class AnnotationManager(object):
    """
    Maintains a comma separated set of "namespace/name" identities stored
    under one annotation key. The set is always written back sorted.
    """

    def __init__(self, key=None):
        self.key = key or settings.METADATA['hybrid-routes']

    def get_routes(self, obj):
        annotations = obj.get('metadata', {}).get('annotations') or {}
        value = annotations.get(self.key, '')
        return [entry.strip() for entry in value.split(',') if entry.strip()]

    def contains_route(self, obj, route):
        return route_identity(route) in self.get_routes(obj)

    def set_routes(self, obj, routes):
        """Replace the whole set, returning whether the object changed."""
        metadata = obj.setdefault('metadata', {})
        annotations = metadata.get('annotations') or {}
        routes = sorted(set(route_identity(route) for route in routes))
        old = annotations.get(self.key)
        if not routes:
            if old is None:
                return False
            del annotations[self.key]
            metadata['annotations'] = annotations
            return True

        value = ','.join(routes)
        if old == value:
            return False
        annotations[self.key] = value
        metadata['annotations'] = annotations
        return True

    def append_route(self, obj, route):
        identity = route_identity(route)
        routes = self.get_routes(obj)
        if identity in routes:
            logger.debug('%s already listed in %s of %s', identity, self.key, object_key(obj))
            return False

        routes.append(identity)
        logger.debug('adding %s to %s of %s', identity, self.key, object_key(obj))
        return self.set_routes(obj, routes)

    def remove_route(self, obj, route):
        identity = route_identity(route)
        annotations = obj.get('metadata', {}).get('annotations')
        if not annotations or self.key not in annotations:
            logger.debug('no %s annotation on %s, nothing to remove', self.key, object_key(obj))
            return False

        routes = self.get_routes(obj)
        if identity not in routes:
            return False

        routes.remove(identity)
        if not routes:
            logger.debug('%s was the last route of %s, dropping %s',
                         identity, object_key(obj), self.key)
        return self.set_routes(obj, routes)


routes_annotation = AnnotationManager()
gateways_annotation = AnnotationManager(settings.METADATA['hybrid-gateways'])

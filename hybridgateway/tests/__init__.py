import logging
import re
import unittest
import uuid
from copy import deepcopy
from urllib.parse import parse_qs, urlparse

import requests_mock

from hybridgateway import KubeHTTPClient, settings

TEST_URL = 'http://k8s.test'

PATH_RE = re.compile(
    r'^/apis?/(?:(?P<group>[^/]+)/)?(?P<version>v[^/]+)/'
    r'(?:namespaces/(?P<namespace>[^/]+)/)?(?P<plural>[^/]+)(?:/(?P<name>[^/]+))?$')


def merge_patch(target, patch):
    if not isinstance(patch, dict):
        return deepcopy(patch)
    result = deepcopy(target) if isinstance(target, dict) else {}
    for key, value in patch.items():
        if value is None:
            result.pop(key, None)
        else:
            result[key] = merge_patch(result.get(key), value)
    return result


def label_selector_matches(selector, labels):
    for requirement in filter(None, (selector or '').split(',')):
        if '=' in requirement:
            key, value = requirement.split('=', 1)
            if labels.get(key) != value:
                return False
        elif requirement not in labels:
            return False
    return True


class FakeKubernetes(object):
    """In-memory Kubernetes API answering the requests of a KubeHTTPClient."""

    def __init__(self):
        self.objects = {}
        self.resource_version = 0
        self.requests = []

    def install(self, adapter):
        adapter.register_uri(requests_mock.ANY, requests_mock.ANY, json=self.handle)

    def _status(self, context, code, reason, message=''):
        context.status_code = code
        context.reason = reason
        return {'kind': 'Status', 'code': code, 'reason': reason, 'message': message}

    def _next_version(self):
        self.resource_version += 1
        return str(self.resource_version)

    def handle(self, request, context):
        url = urlparse(request.url)
        self.requests.append((request.method, url.path))
        if url.path == '/version':
            return {'major': '1', 'minor': '30+'}

        match = PATH_RE.match(url.path)
        if match is None:
            return self._status(context, 404, 'Not Found', url.path)
        plural, namespace, name = match.group('plural', 'namespace', 'name')
        handler = getattr(self, 'do_' + request.method.lower())
        return handler(request, context, plural, namespace or '', name, parse_qs(url.query))

    def do_get(self, request, context, plural, namespace, name, query):
        if name is not None:
            obj = self.objects.get((plural, namespace, name))
            if obj is None:
                return self._status(context, 404, 'Not Found', name)
            return deepcopy(obj)

        selector = query.get('labelSelector', [''])[0]
        items = [
            deepcopy(obj) for (kind, ns, _), obj in sorted(self.objects.items())
            if kind == plural and (not namespace or ns == namespace) and
            label_selector_matches(selector, obj['metadata'].get('labels') or {})
        ]
        return {'kind': 'List', 'items': items}

    def do_post(self, request, context, plural, namespace, name, query):
        obj = request.json()
        name = obj['metadata']['name']
        key = (plural, namespace, name)
        if key in self.objects:
            return self._status(context, 409, 'Conflict', name)
        obj['metadata'].setdefault('uid', str(uuid.uuid4()))
        obj['metadata']['resourceVersion'] = self._next_version()
        self.objects[key] = obj
        context.status_code = 201
        return deepcopy(obj)

    def do_put(self, request, context, plural, namespace, name, query):
        obj = request.json()
        key = (plural, namespace, name)
        existing = self.objects.get(key)
        if existing is None:
            return self._status(context, 404, 'Not Found', name)
        if obj['metadata'].get('resourceVersion') != existing['metadata']['resourceVersion']:
            return self._status(context, 409, 'Conflict', name)
        obj['metadata']['uid'] = existing['metadata']['uid']
        obj['metadata']['resourceVersion'] = self._next_version()
        self.objects[key] = obj
        return deepcopy(obj)

    def do_patch(self, request, context, plural, namespace, name, query):
        key = (plural, namespace, name)
        existing = self.objects.get(key)
        if existing is None:
            return self._status(context, 404, 'Not Found', name)
        patch = request.json()
        patch.get('metadata', {}).pop('resourceVersion', None)
        obj = merge_patch(existing, patch)
        obj['metadata']['resourceVersion'] = self._next_version()
        self.objects[key] = obj
        return deepcopy(obj)

    def do_delete(self, request, context, plural, namespace, name, query):
        obj = self.objects.pop((plural, namespace, name), None)
        if obj is None:
            return self._status(context, 404, 'Not Found', name)
        return self._status(context, 200, 'OK', name)


class TestCase(unittest.TestCase):
    """Runs every test against an empty fake cluster."""

    namespace = 'default'

    @classmethod
    def setUpClass(cls):
        logging.disable(logging.ERROR)

    @classmethod
    def tearDownClass(cls):
        logging.disable(logging.NOTSET)

    def setUp(self):
        self.client = KubeHTTPClient(TEST_URL, False)
        self.kubernetes = FakeKubernetes()
        self.adapter = requests_mock.Adapter()
        self.kubernetes.install(self.adapter)
        self.client.session.mount(TEST_URL, self.adapter)

    def stored(self, kind, name, namespace=None):
        resource = self.client.resource_for(kind)
        response = resource.get(namespace or self.namespace, name, ignore_exception=True)
        if response.status_code == 404:
            return None
        return response.json()

    def persist(self, objects):
        """Write translated objects back, the way the reconciliation loop does."""
        for obj in objects:
            self.client.apply(obj)

    def create_konnect_gateway(self, name='gw', listeners=None, controller_name=None):
        self.client.gatewayclasses.create(
            None, 'kong',
            controller_name=controller_name or settings.CONTROLLER_NAME,
            parameters_ref={
                'group': 'gateway-operator.konghq.com',
                'kind': 'GatewayConfiguration',
                'name': 'konnect',
                'namespace': self.namespace,
            })
        self.client.gatewayconfigurations.create(self.namespace, 'konnect', spec={
            'extensions': [{
                'group': 'konnect.konghq.com',
                'kind': 'KonnectExtension',
                'name': 'konnect',
            }],
        })
        self.client.konnectextensions.create(self.namespace, 'konnect', spec={
            'konnect': {'controlPlane': {'ref': {
                'type': 'konnectNamespacedRef',
                'konnectNamespacedRef': {'name': 'cp'},
            }}},
        })
        self.client.konnectgatewaycontrolplanes.create(self.namespace, 'cp', spec={})
        if listeners is None:
            listeners = [{'name': 'http', 'protocol': 'HTTP', 'port': 80}]
        return self.client.gateways.create(
            self.namespace, name, gateway_class='kong', listeners=listeners).json()

    def create_service(self, name='echo', addresses=('10.0.0.1', '10.0.0.2'), namespace=None,
                       **kwargs):
        namespace = namespace or self.namespace
        kwargs.setdefault('ports', [
            {'name': 'http', 'port': 80, 'protocol': 'TCP', 'targetPort': 8080}])
        service = self.client.services.create(namespace, name, **kwargs).json()
        if addresses:
            self.client.endpointslices.create(
                namespace, name + '-abcde',
                labels={settings.METADATA['service-name']: name},
                ports=[{'name': 'http', 'port': 8080, 'protocol': 'TCP'}],
                endpoints=[
                    {'addresses': [address], 'conditions': {'ready': True}}
                    for address in addresses
                ])
        return service

    def create_route(self, name='echo', rules=None, hostnames=None, parent_refs=None,
                     annotations=None):
        if rules is None:
            rules = [{
                'matches': [{'path': {'type': 'PathPrefix', 'value': '/api'}}],
                'backendRefs': [{'name': 'echo', 'port': 80}],
            }]
        kwargs = {
            'parent_refs': parent_refs or [{'name': 'gw'}],
            'rules': rules,
        }
        if hostnames is not None:
            kwargs['hostnames'] = hostnames
        if annotations:
            kwargs['annotations'] = annotations
        return self.client.httproutes.create(self.namespace, name, **kwargs).json()

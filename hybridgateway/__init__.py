from collections import OrderedDict
import logging
import os
from packaging.version import Version, parse
import requests
import requests.exceptions
from requests_toolbelt import user_agent
import re
from urllib.parse import urljoin

from hybridgateway import settings
from hybridgateway.exceptions import KubeException, KubeHTTPException

__version__ = '0.1.0'

logger = logging.getLogger(__name__)
session = None


def get_k8s_session(k8s_api_verify_tls):
    global session
    if session is None:
        session = requests.Session()
        session.headers = {
            'Content-Type': 'application/json',
            'User-Agent': user_agent('Hybrid Gateway', __version__)
        }
        # outside of a pod there is no service account to pick up
        if os.path.exists(settings.K8S_TOKEN_FILE):
            with open(settings.K8S_TOKEN_FILE) as token_file:
                session.headers['Authorization'] = 'Bearer ' + token_file.read()
        if k8s_api_verify_tls:
            if os.path.exists(settings.K8S_CA_FILE):
                session.verify = settings.K8S_CA_FILE
        else:
            session.verify = False
    return session


class KubeHTTPClient(object):
    api_version = 'v1'
    api_prefix = 'api'

    def __init__(self, url=None, k8s_api_verify_tls=None):
        self.url = url or settings.K8S_API_URL
        if k8s_api_verify_tls is None:
            k8s_api_verify_tls = settings.K8S_API_VERIFY_TLS
        self.k8s_api_verify_tls = k8s_api_verify_tls
        self.session = get_k8s_session(self.k8s_api_verify_tls)
        self.resource_mapping = OrderedDict()

        # map the various k8s Resources to an internal property
        from hybridgateway.resources import Resource  # lazy load
        for res in Resource:
            name = str(res.__name__).lower()  # singular
            component = res.plural or name + 's'
            # check if component has already been processed
            if component in self.resource_mapping:
                continue

            self.resource_mapping[component] = res(self.url, self.k8s_api_verify_tls)
            # map singular Resource name to the plural one
            self.resource_mapping[name] = component
            if res.short_name is not None:
                # map short name to long name so a resource can be named svc
                # but have the main object live at services
                self.resource_mapping[str(res.short_name).lower()] = component

    def api(self, tmpl, *args):
        """Return a fully-qualified Kubernetes API URL from a string template with args."""
        return "/{}/{}".format(self.api_prefix, self.api_version) + tmpl.format(*args)

    def __getattr__(self, name):
        mapping = self.__dict__.get('resource_mapping', {})
        if name in mapping:
            # resolve to final name if needed
            component = mapping[name]
            if type(component) is not str:
                # already a component object
                return component

            return mapping[component]

        return object.__getattribute__(self, name)

    def resource_for(self, kind):
        """Return the Resource handling objects of the given kind."""
        return getattr(self, kind.lower())

    def version(self):
        """Get Kubernetes version"""
        response = self.http_get('/version')
        if self.unhealthy(response.status_code):
            raise KubeHTTPException(response, 'fetching Kubernetes version')

        data = response.json()
        parsed_version = parse(
            re.sub(r"[^0-9\.]", '', str('{}.{}'.format(data['major'], data['minor']))))
        return Version('{}'.format(parsed_version))

    @staticmethod
    def unhealthy(status_code):
        return not 200 <= status_code <= 299

    @staticmethod
    def query_params(labels=None, fields=None, resource_version=None):
        query = {}

        # labels and fields are encoded slightly differently than python-requests can do
        if labels:
            selectors = []
            for key, value in labels.items():
                if '__notin' in key:
                    key = key.replace('__notin', '')
                    selectors.append('{} notin({})'.format(key, ','.join(value)))
                # list is automagically a in()
                elif '__in' in key or isinstance(value, list):
                    key = key.replace('__in', '')
                    selectors.append('{} in({})'.format(key, ','.join(value)))
                elif value is None:
                    # allowing a check if a label exists (or not) without caring about value
                    selectors.append(key)
                elif isinstance(value, str):
                    selectors.append('{}={}'.format(key, value))

            query['labelSelector'] = ','.join(selectors)

        if fields:
            fields = ['{}={}'.format(key, value) for key, value in fields.items()]
            query['fieldSelector'] = ','.join(fields)

        if resource_version:
            query['resourceVersion'] = resource_version

        return query

    @staticmethod
    def log(namespace, message, level='INFO'):
        """Logs a message in the context of a namespace.

        This prefixes log messages with a namespace "tag" so messages about
        a route can be told apart from the translator's own.
        """
        lvl = getattr(logging, level.upper()) if hasattr(logging, level.upper()) else logging.INFO
        logger.log(lvl, "[{}]: {}".format(namespace, message))

    def http_get(self, path, params=None, **kwargs):
        """
        Make a GET request to the k8s server.
        """
        try:
            url = urljoin(self.url, path)
            response = self.session.get(url, params=params, **kwargs)
        except requests.exceptions.ConnectionError as err:
            # reraise as KubeException, but log stacktrace.
            message = "There was a problem retrieving data from " \
                      "the Kubernetes API server. URL: {}, params: {}".format(url, params)
            logger.error(message)
            raise KubeException(message) from err

        return response

    def http_post(self, path, data=None, json=None, **kwargs):
        """
        Make a POST request to the k8s server.
        """
        try:
            url = urljoin(self.url, path)
            response = self.session.post(url, data=data, json=json, **kwargs)
        except requests.exceptions.ConnectionError as err:
            message = "There was a problem posting data to " \
                      "the Kubernetes API server. URL: {}".format(url)
            logger.error(message)
            raise KubeException(message) from err

        return response

    def http_put(self, path, data=None, **kwargs):
        """
        Make a PUT request to the k8s server.
        """
        try:
            url = urljoin(self.url, path)
            response = self.session.put(url, data=data, **kwargs)
        except requests.exceptions.ConnectionError as err:
            message = "There was a problem putting data to " \
                      "the Kubernetes API server. URL: {}".format(url)
            logger.error(message)
            raise KubeException(message) from err

        return response

    def http_patch(self, path, data=None, **kwargs):
        """
        Make a PATCH request to the k8s server.
        """
        try:
            url = urljoin(self.url, path)
            response = self.session.patch(url, data=data, **kwargs)
        except requests.exceptions.ConnectionError as err:
            message = "There was a problem patching data to " \
                      "the Kubernetes API server. URL: {}".format(url)
            logger.error(message)
            raise KubeException(message) from err

        return response

    def http_delete(self, path, **kwargs):
        """
        Make a DELETE request to the k8s server.
        """
        try:
            url = urljoin(self.url, path)
            response = self.session.delete(url, **kwargs)
        except requests.exceptions.ConnectionError as err:
            message = "There was a problem deleting data from " \
                      "the Kubernetes API server. URL: {}".format(url)
            logger.error(message)
            raise KubeException(message) from err

        return response

    def apply(self, obj):
        """Create the object, or replace it when it already exists."""
        resource = self.resource_for(obj['kind'])
        namespace = obj['metadata'].get('namespace')
        if obj['metadata'].get('resourceVersion'):
            return resource.update(namespace, obj['metadata']['name'], obj)
        return resource.create(namespace, obj['metadata']['name'], obj)

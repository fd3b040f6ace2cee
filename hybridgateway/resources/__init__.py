import importlib
import pkgutil

from hybridgateway import KubeHTTPClient, get_k8s_session
from hybridgateway.exceptions import KubeHTTPException


class ResourceRegistry(type):
    """
    A registry of all Resources subclassed
    """
    def __init__(cls, name, bases, nmspc):
        super().__init__(name, bases, nmspc)
        if not hasattr(cls, 'registry'):
            cls.registry = set()
        if not nmspc.get('abstract', False):
            cls.registry.add(cls)

    # Metamethods, called on class objects:
    def __iter__(cls):
        return iter(sorted(cls.registry, key=lambda res: res.__name__))


class Resource(KubeHTTPClient, metaclass=ResourceRegistry):
    abstract = True
    api_version = 'v1'
    api_prefix = 'api'
    kind = None
    plural = None
    short_name = None
    namespaced = True

    def __init__(self, url, k8s_api_verify_tls=True):
        self.url = url
        self.k8s_api_verify_tls = k8s_api_verify_tls
        self.session = get_k8s_session(self.k8s_api_verify_tls)

    @property
    def resource_kind(self):
        return self.kind or type(self).__name__

    @property
    def resource_plural(self):
        return self.plural or self.resource_kind.lower() + 's'

    def collection_url(self, namespace=None):
        if self.namespaced:
            return self.api("/namespaces/{}/{}", namespace, self.resource_plural)
        return self.api("/{}", self.resource_plural)

    def item_url(self, namespace, name):
        return self.collection_url(namespace) + "/{}".format(name)

    def manifest(self, namespace, name, **kwargs):
        data = {
            "apiVersion": self.api_version,
            "kind": self.resource_kind,
            "metadata": {
                "name": name,
            },
        }
        if self.namespaced:
            data["metadata"]["namespace"] = namespace
        for key in ("labels", "annotations"):
            if kwargs.get(key):
                data["metadata"][key] = dict(kwargs[key])
        if "spec" in kwargs:
            data["spec"] = kwargs["spec"]
        if "version" in kwargs:
            data["metadata"]["resourceVersion"] = kwargs.get("version")
        return data

    def get(self, namespace, name=None, ignore_exception=False, **kwargs):
        """
        Fetch a single object or a list
        """
        if name is not None:
            url = self.item_url(namespace, name)
            message = 'get {} "{}" in Namespace "{}"'.format(self.resource_kind, name, namespace)
        else:
            url = self.collection_url(namespace)
            message = 'get {} in Namespace "{}"'.format(self.resource_plural, namespace)

        response = self.http_get(url, params=self.query_params(**kwargs))
        if not ignore_exception and self.unhealthy(response.status_code):
            raise KubeHTTPException(response, message)

        return response

    def create(self, namespace, name, data=None, ignore_exception=False, **kwargs):
        if data is None:
            data = self.manifest(namespace, name, **kwargs)
        response = self.http_post(self.collection_url(namespace), json=data)
        if not ignore_exception and self.unhealthy(response.status_code):
            raise KubeHTTPException(
                response,
                'create {} "{}" in Namespace "{}"', self.resource_kind, name, namespace
            )

        return response

    def update(self, namespace, name, data, ignore_exception=False):
        response = self.http_put(self.item_url(namespace, name), json=data)
        if not ignore_exception and self.unhealthy(response.status_code):
            raise KubeHTTPException(
                response,
                'update {} "{}" in Namespace "{}"', self.resource_kind, name, namespace
            )

        return response

    def patch(self, namespace, name, ignore_exception=False, **kwargs):
        data = self.manifest(namespace, name, **kwargs)
        response = self.http_patch(
            self.item_url(namespace, name),
            json=data,
            headers={"Content-Type": "application/merge-patch+json"}
        )
        if not ignore_exception and self.unhealthy(response.status_code):
            raise KubeHTTPException(
                response,
                'patch {} "{}" in Namespace "{}"', self.resource_kind, name, namespace
            )

        return response

    def delete(self, namespace, name, ignore_exception=True):
        response = self.http_delete(self.item_url(namespace, name))
        if not ignore_exception and self.unhealthy(response.status_code):
            raise KubeHTTPException(
                response,
                'delete {} "{}" in Namespace "{}"', self.resource_kind, name, namespace
            )

        return response


# register every Resource subclass shipped in this package
for _, module_name, _ in pkgutil.iter_modules(__path__):
    importlib.import_module('{}.{}'.format(__name__, module_name))

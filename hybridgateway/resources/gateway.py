from hybridgateway.resources import Resource


class GatewayResource(Resource):
    abstract = True
    api_prefix = 'apis'
    api_version = 'gateway.networking.k8s.io/v1'


class GatewayClass(GatewayResource):
    plural = 'gatewayclasses'
    namespaced = False

    def manifest(self, namespace, name, **kwargs):
        data = super().manifest(namespace, name, **kwargs)
        data["spec"] = {
            "controllerName": kwargs.get("controller_name"),
        }
        if kwargs.get("parameters_ref"):
            data["spec"]["parametersRef"] = kwargs["parameters_ref"]
        return data


class Gateway(GatewayResource):

    def manifest(self, namespace, name, **kwargs):
        data = super().manifest(namespace, name, **kwargs)
        data["spec"] = {
            "gatewayClassName": kwargs.get("gateway_class", "default"),
            "listeners": kwargs.get("listeners", [])
        }
        return data


class HTTPRoute(GatewayResource):

    def manifest(self, namespace, name, **kwargs):
        data = super().manifest(namespace, name, **kwargs)
        data["spec"] = {
            "parentRefs": kwargs.get("parent_refs", []),
            "rules": kwargs.get("rules", [])
        }
        if "hostnames" in kwargs:
            data["spec"]["hostnames"] = kwargs["hostnames"]
        return data


class ReferenceGrant(GatewayResource):
    api_version = 'gateway.networking.k8s.io/v1beta1'

    def manifest(self, namespace, name, **kwargs):
        data = super().manifest(namespace, name, **kwargs)
        data["spec"] = {
            "from": kwargs.get("from_refs", []),
            "to": kwargs.get("to_refs", [])
        }
        return data

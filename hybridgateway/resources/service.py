from hybridgateway.resources import Resource


class Service(Resource):
    short_name = 'svc'

    def manifest(self, namespace, name, **kwargs):
        data = super().manifest(namespace, name, **kwargs)
        data["spec"] = {
            "type": kwargs.get("type", "ClusterIP"),
            "ports": kwargs.get("ports", []),
        }
        if "cluster_ip" in kwargs:
            data["spec"]["clusterIP"] = kwargs["cluster_ip"]
        if "external_name" in kwargs:
            data["spec"]["externalName"] = kwargs["external_name"]
        return data


class EndpointSlice(Resource):
    api_prefix = 'apis'
    api_version = 'discovery.k8s.io/v1'

    def manifest(self, namespace, name, **kwargs):
        data = super().manifest(namespace, name, **kwargs)
        data["addressType"] = kwargs.get("address_type", "IPv4")
        data["endpoints"] = kwargs.get("endpoints", [])
        data["ports"] = kwargs.get("ports", [])
        return data


class Secret(Resource):

    def manifest(self, namespace, name, **kwargs):
        data = super().manifest(namespace, name, **kwargs)
        data["type"] = kwargs.get("type", "Opaque")
        data["data"] = kwargs.get("secret_data", {})
        return data

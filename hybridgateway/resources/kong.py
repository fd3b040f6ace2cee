from hybridgateway.resources import Resource


class KongResource(Resource):
    abstract = True
    api_prefix = 'apis'
    api_version = 'configuration.konghq.com/v1alpha1'


class KongUpstream(KongResource):
    pass


class KongService(KongResource):
    pass


class KongRoute(KongResource):
    pass


class KongTarget(KongResource):
    pass


class KongPlugin(KongResource):
    api_version = 'configuration.konghq.com/v1'

    def manifest(self, namespace, name, **kwargs):
        data = super().manifest(namespace, name, **kwargs)
        # KongPlugin keeps its settings at the top level, it has no spec
        data.pop("spec", None)
        data["plugin"] = kwargs.get("plugin")
        if "config" in kwargs:
            data["config"] = kwargs["config"]
        return data


class KongPluginBinding(KongResource):
    pass


class KongCertificate(KongResource):
    pass


class KongSNI(KongResource):
    pass


class KonnectResource(Resource):
    abstract = True
    api_prefix = 'apis'
    api_version = 'konnect.konghq.com/v1alpha2'


class KonnectExtension(KonnectResource):
    pass


class KonnectGatewayControlPlane(KonnectResource):
    pass


class GatewayConfiguration(Resource):
    api_prefix = 'apis'
    api_version = 'gateway-operator.konghq.com/v2beta1'

from hybridgateway.builder.base import Builder, kong_ref


class KongPluginBindingBuilder(Builder):
    kind = "KongPluginBinding"

    def with_plugin_ref(self, name):
        self.spec["pluginRef"] = {"name": name}
        return self

    def with_route_ref(self, name):
        self.spec.setdefault("targets", {})["routeRef"] = kong_ref("KongRoute", name)
        return self

    def with_service_ref(self, name):
        self.spec.setdefault("targets", {})["serviceRef"] = kong_ref("KongService", name)
        return self

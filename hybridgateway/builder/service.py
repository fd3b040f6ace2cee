from hybridgateway.builder.base import Builder


class KongServiceBuilder(Builder):
    kind = "KongService"

    def with_spec_host(self, host):
        self.spec["host"] = host
        return self

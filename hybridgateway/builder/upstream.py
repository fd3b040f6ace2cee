from hybridgateway.builder.base import Builder


class KongUpstreamBuilder(Builder):
    kind = "KongUpstream"

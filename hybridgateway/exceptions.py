class KubeException(Exception):
    def __init__(self, *args, **kwargs):
        Exception.__init__(self, *args, **kwargs)


class KubeHTTPException(KubeException):
    def __init__(self, response, errmsg, *args, **kwargs):
        self.response = response

        msg = errmsg.format(*args)
        msg = 'failed to {}: {} {}'.format(msg, response.status_code, response.reason)
        KubeException.__init__(self, msg, *args, **kwargs)


class HybridGatewayError(Exception):
    """Base class for every error raised while translating routes and gateways."""


class BuildError(HybridGatewayError):
    """Collects every error recorded by a builder before ``build()`` was called."""

    def __init__(self, errors):
        self.errors = list(errors)
        HybridGatewayError.__init__(self, '; '.join(str(e) for e in self.errors))


class OwnerReferenceError(HybridGatewayError):
    pass


class FilterConfigError(HybridGatewayError):
    pass


class ErrEmptyFilterConfig(FilterConfigError):
    """A filter carried no payload, or its translation left every bucket empty."""


class UnsupportedFilterError(FilterConfigError):
    pass


class NamingCollisionError(HybridGatewayError):
    pass


class RefError(HybridGatewayError):
    pass


class TranslationError(HybridGatewayError):
    """Wraps the per-rule failures of a single translation pass."""

    def __init__(self, errors):
        self.errors = list(errors)
        HybridGatewayError.__init__(self, '\n'.join(str(e) for e in self.errors))


class InvalidRouteError(HybridGatewayError):
    pass

from hybridgateway import schemas
from hybridgateway.builder.base import Builder
from hybridgateway.exceptions import FilterConfigError
from hybridgateway.plugin import translate_filter
from hybridgateway.utils import validate_json


class KongPluginBuilder(Builder):
    kind = "KongPlugin"
    api_version = 'configuration.konghq.com/v1'

    def __init__(self):
        super().__init__()
        # KongPlugin carries its settings at the top level
        del self.obj["spec"]

    def with_plugin_name(self, name):
        self.obj["plugin"] = name
        return self

    def with_config(self, config):
        schema = schemas.PLUGIN_CONFIG_SCHEMAS.get(self.obj.get("plugin"))
        try:
            if schema is not None:
                validate_json(config, schema, FilterConfigError)
        except FilterConfigError as e:
            self.errors.append(e)
            return self
        self.obj["config"] = config
        return self

    def with_filter(self, route_filter, rule=None):
        try:
            name, config = translate_filter(route_filter, rule)
        except FilterConfigError as e:
            self.errors.append(e)
            return self
        return self.with_plugin_name(name).with_config(config)

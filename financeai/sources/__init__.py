from importlib import import_module


def get_source(name, config):
    """Instantiate the source registered under ``name`` in ``config``."""
    source_path = config['data_sources'][name]
    module_name, cls_name = source_path.rsplit('.', 1)
    mod = import_module(module_name)
    cls = getattr(mod, cls_name)
    return cls(**(config.get('source_options', {}).get(name) or {}))

"""Test package structure and imports."""


def test_package_import():
    """Test that the fibertopo package can be imported."""
    import fibertopo

    assert hasattr(fibertopo, "__version__")
    assert fibertopo.__version__ == "0.1.0"


def test_public_api_exports():
    """Test that every name in __all__ resolves."""
    import fibertopo

    for name in fibertopo.__all__:
        assert hasattr(fibertopo, name), name


def test_log_config_module_import():
    """Test that fibertopo.log_config can be imported."""
    import fibertopo.log_config

    assert callable(fibertopo.log_config.get_logger)
    assert callable(fibertopo.log_config.set_global_log_level)


def test_engine_modules_import():
    """Test that the engine modules import without side effects."""
    import fibertopo.graph
    import fibertopo.inventory
    import fibertopo.kinds
    import fibertopo.validation

    assert callable(fibertopo.graph.build_network_graph)
    assert callable(fibertopo.inventory.filter_connections)
    assert callable(fibertopo.kinds.kind_info)
    assert callable(fibertopo.validation.validate_inventory)

from crbundler import bundle_closure, bundle_tree
from crbundler.application_version import __version__


def test_version():
    assert __version__.count('.') == 2


def test_public_api():
    assert callable(bundle_closure)
    assert callable(bundle_tree)

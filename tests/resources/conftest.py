import pytest

from kubelink._cogs.clients.discovery import Discovery
from kubelink._cogs.clients.thirdparty import ThirdPartyResources


@pytest.fixture()
def discovery(json_codec, protobuf_codec, settings, context, logger):
    return Discovery(
        json_codec=json_codec,
        protobuf_codec=protobuf_codec,
        settings=settings,
        context=context,
        logger=logger,
    )


@pytest.fixture()
def metrics(json_codec, settings, context, logger):
    return ThirdPartyResources(
        'metrics.example.com', 'v1',
        codec=json_codec,
        settings=settings,
        context=context,
        logger=logger,
    )

from tapo_camera.provider import TapoProvider


def create_scrypted_plugin():
    return TapoProvider()

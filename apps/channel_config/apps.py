"""
apps.channel_config.apps
"""
from django.apps import AppConfig


class ChannelConfigConfig(AppConfig):
    name = "apps.channel_config"
    label = "channel_config"
    verbose_name = "Channel Configuration"

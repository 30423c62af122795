"""
Plugins for the pipeline stages.
"""

from .fee_bump import PLUGIN_NAME, FeeBumpPluginErrorCode, FeeBumpPluginError, create_fee_bump_pipeline, FeeBumpPlugin

__all__ = ["PLUGIN_NAME", "FeeBumpPluginErrorCode", "FeeBumpPluginError", "create_fee_bump_pipeline", "FeeBumpPlugin"]

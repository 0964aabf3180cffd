"""Typed configuration carried by voice agents."""

from .settings import (
    AgentTools,
    CustomTool,
    CustomToolType,
    DataCollection,
    DataCollectionField,
    DetectLanguageTool,
    EvaluationCriteria,
    LifecycleWebhook,
    LLMSettings,
    McpApprovalMode,
    McpConfig,
    McpServer,
    McpServerType,
    PromptTemplate,
    SystemTool,
    SystemTools,
    ToolIntegration,
    ToolParameter,
    ToolWebhook,
    TransferNumber,
    TransferRule,
    TransferToAgentTool,
    TransferToNumberTool,
    VoicemailDetectionTool,
    VoiceSettings,
)

__all__ = [
    "AgentTools",
    "CustomTool",
    "CustomToolType",
    "DataCollection",
    "DataCollectionField",
    "DetectLanguageTool",
    "EvaluationCriteria",
    "LifecycleWebhook",
    "LLMSettings",
    "McpApprovalMode",
    "McpConfig",
    "McpServer",
    "McpServerType",
    "PromptTemplate",
    "SystemTool",
    "SystemTools",
    "ToolIntegration",
    "ToolParameter",
    "ToolWebhook",
    "TransferNumber",
    "TransferRule",
    "TransferToAgentTool",
    "TransferToNumberTool",
    "VoicemailDetectionTool",
    "VoiceSettings",
]

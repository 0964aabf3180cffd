"""
Agent Configuration Models

Typed configuration sub-structures carried by an agent. Every model has
defaults for every field so an agent created with no configuration still
round-trips as a fully populated structure.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# =============================================================================
# Voice / LLM
# =============================================================================


class VoiceSettings(BaseModel):
    """Text-to-speech tuning for the hosted agent voice."""
    stability: float = Field(default=0.5, ge=0.0, le=1.0)
    similarity_boost: float = Field(default=0.75, ge=0.0, le=1.0)
    style: float = Field(default=0.0, ge=0.0, le=1.0)
    use_speaker_boost: bool = True


class LLMSettings(BaseModel):
    """Language model used by the hosted agent."""
    model: str = "gpt-4o-mini"
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=150, ge=1)


# =============================================================================
# System Tools
# =============================================================================


class SystemTool(BaseModel):
    """Built-in tool toggle shared by all system tools."""
    enabled: bool = False
    description: Optional[str] = None
    disable_interruptions: bool = False


class DetectLanguageTool(SystemTool):
    supported_languages: List[str] = Field(default_factory=list)


class TransferRule(BaseModel):
    """Condition under which the call is handed to another agent."""
    agent_id: str
    agent_name: Optional[str] = None
    condition: str
    delay_ms: int = 0
    transfer_message: Optional[str] = None
    enable_first_message: bool = True


class TransferToAgentTool(SystemTool):
    transfer_rules: List[TransferRule] = Field(default_factory=list)


class TransferNumber(BaseModel):
    number: str
    label: str
    condition: Optional[str] = None


class TransferToNumberTool(SystemTool):
    phone_numbers: List[TransferNumber] = Field(default_factory=list)


class VoicemailDetectionTool(SystemTool):
    leave_message: bool = False
    message_content: Optional[str] = None


class SystemTools(BaseModel):
    end_call: SystemTool = Field(default_factory=lambda: SystemTool(enabled=True))
    detect_language: DetectLanguageTool = Field(default_factory=DetectLanguageTool)
    skip_turn: SystemTool = Field(default_factory=SystemTool)
    transfer_to_agent: TransferToAgentTool = Field(default_factory=TransferToAgentTool)
    transfer_to_number: TransferToNumberTool = Field(default_factory=TransferToNumberTool)
    play_keypad_tone: SystemTool = Field(default_factory=SystemTool)
    voicemail_detection: VoicemailDetectionTool = Field(default_factory=VoicemailDetectionTool)


# =============================================================================
# Webhooks / Custom Tools
# =============================================================================


class ToolWebhook(BaseModel):
    """Outbound HTTP call the agent can make during a conversation."""
    id: str
    name: str
    url: str
    method: str = "POST"
    headers: Dict[str, str] = Field(default_factory=dict)
    description: Optional[str] = None
    enabled: bool = True


class LifecycleWebhook(BaseModel):
    """Webhook fired at conversation start or after the call ends."""
    enabled: bool = False
    url: Optional[str] = None
    description: Optional[str] = None


class ToolIntegration(BaseModel):
    id: str
    name: str
    type: str
    configuration: Dict[str, Any] = Field(default_factory=dict)
    enabled: bool = True


class CustomToolType(str, Enum):
    WEBHOOK = "webhook"
    INTEGRATION = "integration"
    SERVER = "server"
    CLIENT = "client"
    RAG = "rag"
    CUSTOM = "custom"
    MCP = "mcp"


class McpServerType(str, Enum):
    SSE = "sse"
    STREAMABLE_HTTP = "streamable_http"


class McpApprovalMode(str, Enum):
    ALWAYS_ASK = "always_ask"
    FINE_GRAINED = "fine_grained"
    NO_APPROVAL = "no_approval"


class McpConfig(BaseModel):
    server_type: McpServerType = McpServerType.SSE
    secret_token: Optional[str] = None
    approval_mode: McpApprovalMode = McpApprovalMode.ALWAYS_ASK
    trusted: bool = False


class ToolParameter(BaseModel):
    """One query, body or path parameter of a custom tool."""
    name: str
    type: str = "string"
    required: bool = False
    value_type: str = "llm_prompt"
    description: str = ""


class CustomTool(BaseModel):
    id: str
    name: str
    type: CustomToolType = CustomToolType.WEBHOOK
    url: Optional[str] = None
    method: Optional[str] = None
    headers: Dict[str, str] = Field(default_factory=dict)
    parameters: Dict[str, Any] = Field(default_factory=dict)
    configuration: Dict[str, Any] = Field(default_factory=dict)
    description: Optional[str] = None
    enabled: bool = True
    mcp_config: Optional[McpConfig] = None
    query_parameters: List[ToolParameter] = Field(default_factory=list)
    body_parameters: List[ToolParameter] = Field(default_factory=list)
    path_parameters: List[ToolParameter] = Field(default_factory=list)


class McpServer(BaseModel):
    id: str
    name: str
    url: str
    api_key: Optional[str] = None
    configuration: Dict[str, Any] = Field(default_factory=dict)
    enabled: bool = True


class AgentTools(BaseModel):
    """Everything the agent can call out to during a conversation."""
    system_tools: SystemTools = Field(default_factory=SystemTools)
    webhooks: List[ToolWebhook] = Field(default_factory=list)
    conversation_initiation_webhook: LifecycleWebhook = Field(default_factory=LifecycleWebhook)
    post_call_webhook: LifecycleWebhook = Field(default_factory=LifecycleWebhook)
    integrations: List[ToolIntegration] = Field(default_factory=list)
    custom_tools: List[CustomTool] = Field(default_factory=list)
    tool_ids: List[str] = Field(default_factory=list)
    mcp_servers: List[McpServer] = Field(default_factory=list)


# =============================================================================
# Post-call Analysis
# =============================================================================


class EvaluationCriteria(BaseModel):
    enabled: bool = False
    criteria: List[str] = Field(default_factory=list)


class DataCollectionField(BaseModel):
    name: str
    type: str = "string"
    description: Optional[str] = None


class DataCollection(BaseModel):
    enabled: bool = False
    fields: List[DataCollectionField] = Field(default_factory=list)


class PromptTemplate(BaseModel):
    id: str
    name: str
    content: str

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration settings for the Chat Notifier service"""

    # Application settings
    service_name: str = "chat-notifier"
    log_level: str = "INFO"
    environment: str = "dev"

    # AWS SQS settings
    aws_region: str = "ap-southeast-1"
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    queue_url: str = "http://localhost:9324/queue/chat-message-created"

    # SQS Processing settings
    sqs_max_messages: int = 10
    sqs_visibility_timeout: int = 60  # seconds
    sqs_wait_time: int = 20  # seconds
    sqs_receive_attempts: int = 3

    # Firebase settings
    firebase_secret: Optional[str] = None
    firebase_project_id: Optional[str] = None

    # Profile documents
    users_collection: str = "users"
    full_name_field: str = "fullName"
    privileged_field: str = "isAdmin"
    tokens_field: str = "fcmTokens"

    # Message records
    message_path_template: str = "chats/{chatId}/messages/{messageId}"
    chat_key_separator: str = "_"

    # Notification rendering
    privileged_display_name: str = "Dr. Ali Kamal"
    default_sender_name: str = "Someone"
    max_body_length: int = 150
    max_sender_name_length: int = 64

    # FCM batching settings
    fcm_batch_size: int = 500  # FCM allows up to 500 tokens per multicast request

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


# Create settings instance
settings = Settings()

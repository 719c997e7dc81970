from pydantic import BaseModel


class NotificationReceipt(BaseModel):
    message_id: str
    status: str = "sent"
    recipient: str

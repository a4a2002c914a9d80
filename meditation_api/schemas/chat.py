from pydantic import BaseModel, Field

class ChatMessageRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=1000)  # sender comes from the token

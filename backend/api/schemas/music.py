from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

# 必須項目の欠落はハンドラ側で 400 として返すため、ここでは全て Optional とする

class MusicCreate(BaseModel):
    title: Optional[str] = None
    artist: Optional[str] = None
    owner: Optional[str] = None
    description: Optional[str] = None
    price: Optional[str] = None
    audio_url: Optional[str] = Field(default=None, alias="audioUrl")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    metadata_url: Optional[str] = Field(default=None, alias="metadataUrl")
    ip_id: Optional[str] = Field(default=None, alias="ipId")
    tx_hash: Optional[str] = Field(default=None, alias="txHash")

    model_config = ConfigDict(populate_by_name=True)

class CommentCreate(BaseModel):
    comment: Optional[str] = None

class NotificationRead(BaseModel):
    comment_id: Optional[str] = Field(default=None, alias="commentId")
    music_id: Optional[str] = Field(default=None, alias="musicId")
    owner: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

from typing import Optional, Dict, Any, List
from pydantic import BaseModel, ConfigDict, Field

# 保存データのレコード形式のバージョン
# デフォルト値はメモリ上でのみ補い、保存時には元のレコードにないフィールドを追加しない
SCHEMA_VERSION = 1

class AdminComment(BaseModel):
    """
    管理者コメント。追記のみで、所有者が変更できるのは read だけ
    """
    id: str
    admin: str = ""
    comment: str = ""
    timestamp: str = ""
    read: bool = False

    model_config = ConfigDict(extra="allow")

class Track(BaseModel):
    """
    音楽トラック (Music NFT) のメタデータ
    JSON 上は camelCase (audioUrl 等) で保存される
    """
    id: str
    title: str = ""
    artist: str = ""
    description: str = ""
    price: str = "0"
    audio_url: str = Field(default="", alias="audioUrl")
    image_url: str = Field(default="", alias="imageUrl")
    owner: str
    metadata_url: str = Field(default="", alias="metadataUrl")
    created_at: str = Field(default="", alias="createdAt")

    # オンチェーン登録後に付与される
    ip_id: Optional[str] = Field(default=None, alias="ipId")
    tx_hash: Optional[str] = Field(default=None, alias="txHash")

    hidden: Optional[bool] = None
    admin_comments: Optional[List[AdminComment]] = Field(default=None, alias="adminComments")

    # extra="allow" により、未知のフィールドも書き戻し時にそのまま保持される
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @property
    def is_hidden(self) -> bool:
        return bool(self.hidden)

    @property
    def comments(self) -> List[AdminComment]:
        return self.admin_comments or []

    def is_owned_by(self, address: str) -> bool:
        # ウォレットアドレスは大文字小文字を区別しない
        return self.owner.lower() == address.lower()

    def to_record(self) -> Dict[str, Any]:
        # 読み込み時に存在したフィールドと、その後代入したフィールドのみを書き出す
        # (デフォルト値は付与せず、明示的な null もそのまま残す)
        return self.model_dump(by_alias=True, exclude_unset=True)

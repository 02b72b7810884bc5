import hashlib


def hash_content(text: str) -> str:
    # surrogatepass: 保证任意 Python str 都能得到确定的摘要
    return hashlib.sha256(text.encode("utf-8", "surrogatepass")).hexdigest()


# 合成空根节点的 id
EMPTY_CONTENT_HASH = hash_content("")

# skin_admin/api/products/schemas.py
from marshmallow import Schema, fields, validate, post_load


class ProductListQuerySchema(Schema):
    """GET /api/products/ 쿼리 파라미터 스키마."""
    page_size = fields.Int(validate=validate.Range(min=1, max=100))
    cursor = fields.Str()
    q = fields.Str(load_default="")


class ProductCreateSchema(Schema):
    """
    POST /api/products/ 요청 스키마. 정규화된 필드명(camelCase)으로 받고,
    로드 결과도 같은 정규화된 키로 돌려줍니다.
    """
    product_name = fields.Str(required=True, data_key='productName', validate=validate.Length(min=1))
    brand = fields.Str(required=True, validate=validate.Length(min=1))
    category = fields.Str(required=True, validate=validate.Length(min=1))
    description = fields.Str()
    ingredients = fields.Str()
    image_url = fields.Str(data_key='imageUrl', allow_none=True)
    product_url = fields.Str(data_key='productUrl', allow_none=True)
    external_url = fields.Str(data_key='externalUrl', allow_none=True)
    evaluation_score = fields.Float(data_key='evaluationScore', allow_none=True)
    review_count = fields.Int(data_key='reviewCount', allow_none=True, validate=validate.Range(min=0))
    volume_price = fields.Str(data_key='volumePrice', allow_none=True)
    tags = fields.List(fields.Str())

    @post_load
    def to_normalized_names(self, data, **kwargs):
        return {self.fields[name].data_key or name: value for name, value in data.items()}


class ProductImportSchema(Schema):
    """JSON 본문으로 CSV 텍스트를 보낼 때 사용하는 스키마 (파일 업로드 대신)."""
    csv = fields.Str(required=True, validate=validate.Length(min=1))


class ProductResponseSchema(Schema):
    product_id = fields.Str(dump_only=True)
    product_name = fields.Str()
    brand = fields.Str()
    category = fields.Str()
    description = fields.Str()
    ingredients = fields.Str()
    image_url = fields.Str(allow_none=True)
    product_url = fields.Str(allow_none=True)
    external_url = fields.Str(allow_none=True)
    evaluation_score = fields.Float(allow_none=True)
    review_count = fields.Int(allow_none=True)
    volume_price = fields.Str(allow_none=True)
    tags = fields.List(fields.Str())


class ProductPageResponseSchema(Schema):
    products = fields.List(fields.Nested(ProductResponseSchema))
    has_next_page = fields.Bool()
    last_doc_id = fields.Str(allow_none=True)

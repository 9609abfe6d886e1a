# src/recognition/endpoints.py

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Tuple

from src.recognition.config import DEFAULT_BASE_URL
from src.recognition.request import BodyEncoding


class InputVariant(str, Enum):
    BYTES = "bytes"
    FILE = "file"
    URL = "url"
    PDF = "pdf"


IMAGE = frozenset({InputVariant.BYTES, InputVariant.FILE})
IMAGE_OR_URL = IMAGE | {InputVariant.URL}
IMAGE_URL_OR_PDF = IMAGE_OR_URL | {InputVariant.PDF}
URL_ONLY = frozenset({InputVariant.URL})
FIELDS_ONLY: FrozenSet[InputVariant] = frozenset()


@dataclass(frozen=True)
class Endpoint:
    """
    Everything that distinguishes one remote capability from another:
    where it lives, which inputs it takes and under which field names.
    """
    name: str
    path: str
    family: str
    variants: FrozenSet[InputVariant] = IMAGE
    source_field: str = "image"
    url_field: str = "url"
    pdf_field: str = "pdf_file"
    required: Tuple[str, ...] = ()
    encoding: BodyEncoding = BodyEncoding.FORM

    def url(self, base_url: str = DEFAULT_BASE_URL) -> str:
        return f"{base_url.rstrip('/')}{self.path}"

    def accepts(self, variant: InputVariant) -> bool:
        return variant in self.variants


ENDPOINTS: Dict[str, Endpoint] = {}


def _add(endpoint: Endpoint):
    if endpoint.name in ENDPOINTS:
        raise ValueError(f"Duplicate endpoint name: {endpoint.name}")
    ENDPOINTS[endpoint.name] = endpoint


def _ocr(name, tail, variants=IMAGE, **kw):
    _add(Endpoint(name, f"/rest/2.0/ocr/v1/{tail}", "ocr", variants, **kw))


def _classify(name, path, variants=IMAGE, **kw):
    _add(Endpoint(name, f"/rest/2.0/{path}", "image_classify", variants, **kw))


def _censor(name, path, variants=FIELDS_ONLY, **kw):
    _add(Endpoint(name, path, "content_censor", variants, **kw))


# ---- Text recognition (OCR) ----
_ocr("basic_general", "general_basic", IMAGE_OR_URL)
_ocr("basic_accurate_general", "accurate_basic")
_ocr("general", "general", IMAGE_OR_URL)
_ocr("accurate_general", "accurate")
_ocr("enhanced_general", "general_enhanced", IMAGE_OR_URL)
_ocr("web_image", "webimage", IMAGE_OR_URL)
_ocr("webimage_loc", "webimage_loc")
_ocr("handwriting", "handwriting", IMAGE_OR_URL)
_ocr("numbers", "numbers")
_ocr("qrcode", "qrcode", IMAGE_OR_URL)
_ocr("formula", "formula", IMAGE_OR_URL)
_ocr("doc_analysis", "doc_analysis", IMAGE_OR_URL)
_ocr("doc_analysis_office", "doc_analysis_office", IMAGE_URL_OR_PDF)
_ocr("seal", "seal", IMAGE_URL_OR_PDF)
_ocr("meter", "meter")
_ocr("facade", "facade")
_ocr("intelligent_ocr", "intelligent_ocr", IMAGE_OR_URL)
_ocr("form", "form")

# cards and certificates
_ocr("idcard", "idcard", required=("id_card_side",))
_ocr("multi_idcard", "multi_idcard", IMAGE_OR_URL)
_ocr("bankcard", "bankcard")
_ocr("passport", "passport", IMAGE_OR_URL)
_ocr("business_card", "business_card")
_ocr("social_security_card", "social_security_card", IMAGE_OR_URL)
_ocr("multi_card_classify", "multi_card_classify", IMAGE_OR_URL)
_ocr("household_register", "household_register", IMAGE_OR_URL)
_ocr("birth_certificate", "birth_certificate")
_ocr("hk_macau_exitentrypermit", "HK_Macau_exitentrypermit")
_ocr("taiwan_exitentrypermit", "taiwan_exitentrypermit")
_ocr("business_license", "business_license")
_ocr("travel_card", "travel_card")

# vehicles
_ocr("driving_license", "driving_license")
_ocr("vehicle_license", "vehicle_license")
_ocr("license_plate", "license_plate")
_ocr("vin_code", "vin_code")
_ocr("vehicle_certificate", "vehicle_certificate", IMAGE_OR_URL)
_ocr("vehicle_registration_certificate", "vehicle_registration_certificate", IMAGE_OR_URL)
_ocr("mixed_multi_vehicle", "mixed_multi_vehicle", IMAGE_OR_URL)
_ocr("road_transport_certificate", "road_transport_certificate", IMAGE_URL_OR_PDF)
_ocr("weight_note", "weight_note", IMAGE_URL_OR_PDF)
_ocr("waybill", "waybill", IMAGE_OR_URL)

# receipts, tickets and invoices
_ocr("receipt", "receipt")
_ocr("shopping_receipt", "shopping_receipt", IMAGE_URL_OR_PDF)
_ocr("train_ticket", "train_ticket")
_ocr("taxi_receipt", "taxi_receipt")
_ocr("air_ticket", "air_ticket", IMAGE_OR_URL)
_ocr("bus_ticket", "bus_ticket", IMAGE_OR_URL)
_ocr("ferry_ticket", "ferry_ticket", IMAGE_OR_URL)
_ocr("toll_invoice", "toll_invoice", IMAGE_OR_URL)
_ocr("online_taxi_itinerary", "online_taxi_itinerary", IMAGE_URL_OR_PDF)
_ocr("quota_invoice", "quota_invoice")
_ocr("invoice", "invoice", IMAGE_OR_URL)
_ocr("vat_invoice", "vat_invoice", IMAGE_URL_OR_PDF)
_ocr("vat_invoice_verification", "vat_invoice_verification")
_ocr("multiple_invoice", "multiple_invoice", IMAGE_URL_OR_PDF)
_ocr("vehicle_invoice", "vehicle_invoice", IMAGE_OR_URL)
_ocr("used_vehicle_invoice", "used_vehicle_invoice", IMAGE_OR_URL)
_ocr("lottery", "lottery")
_ocr("insurance_documents", "insurance_documents")

# medical documents
_ocr("medical_invoice", "medical_invoice", IMAGE_OR_URL)
_ocr("medical_detail", "medical_detail", IMAGE_OR_URL)
_ocr("medical_statement", "medical_statement", IMAGE_OR_URL)
_ocr("medical_record", "medical_record", IMAGE_OR_URL)
_ocr("medical_summary", "medical_summary", IMAGE_OR_URL)
_ocr("medical_report_detection", "medical_report_detection", IMAGE_OR_URL)
_ocr("medical_recipts_classify", "medical_recipts_classify", IMAGE_OR_URL)

# custom templates and asynchronous tables
_add(Endpoint("custom", "/rest/2.0/solution/v1/iocr/recognise", "ocr"))
_add(Endpoint("table_recognition_async", "/rest/2.0/solution/v1/form_ocr/request", "ocr"))
_add(Endpoint(
    "table_result_get",
    "/rest/2.0/solution/v1/form_ocr/get_request_result",
    "ocr",
    FIELDS_ONLY,
    required=("request_id",),
))

# ---- Image classification ----
_classify("advanced_general", "image-classify/v2/advanced_general")
_classify("dish_detect", "image-classify/v2/dish")
_classify("car_detect", "image-classify/v1/car", IMAGE_OR_URL)
_classify("vehicle_detect", "image-classify/v1/vehicle_detect", IMAGE_OR_URL)
_classify("vehicle_detect_high", "image-classify/v1/vehicle_detect_high", IMAGE_OR_URL)
_classify("vehicle_attr", "image-classify/v1/vehicle_attr", IMAGE_OR_URL)
_classify("vehicle_damage", "image-classify/v1/vehicle_damage")
_classify("vehicle_seg", "image-classify/v1/vehicle_seg")
_classify("traffic_flow", "image-classify/v1/traffic_flow", IMAGE_OR_URL,
          required=("case_id", "case_init", "area"))
_classify("logo_search", "image-classify/v2/logo")
_classify("logo_add", "realtime_search/v1/logo/add", required=("brief",))
_classify("logo_delete_by_image", "realtime_search/v1/logo/delete")
_classify("logo_delete_by_sign", "realtime_search/v1/logo/delete", FIELDS_ONLY,
          required=("cont_sign",))
_classify("animal_detect", "image-classify/v1/animal")
_classify("plant_detect", "image-classify/v1/plant")
_classify("object_detect", "image-classify/v1/object_detect")
_classify("multi_object_detect", "image-classify/v1/multi_object_detect")
_classify("landmark", "image-classify/v1/landmark")
_classify("flower", "image-classify/v1/flower")
_classify("ingredient", "image-classify/v1/classify/ingredient")
_classify("redwine", "image-classify/v1/redwine")
_classify("currency", "image-classify/v1/currency")
_classify("custom_dish_add", "image-classify/v1/realtime_search/dish/add", required=("brief",))
_classify("custom_dish_search", "image-classify/v1/realtime_search/dish/search")
_classify("custom_dish_delete_by_image", "image-classify/v1/realtime_search/dish/delete")
_classify("custom_dish_delete_by_sign", "image-classify/v1/realtime_search/dish/delete",
          FIELDS_ONLY, required=("cont_sign",))
_add(Endpoint(
    "combination",
    "/api/v1/solution/direct/imagerecognition/combination",
    "image_classify",
    IMAGE_OR_URL,
    url_field="imgUrl",
    required=("scenes",),
    encoding=BodyEncoding.JSON,
))

# ---- Content moderation ----
_censor("report", "/rpc/2.0/feedback/v1/report",
        required=("feedback",), encoding=BodyEncoding.JSON)
_censor("image_censor", "/rest/2.0/solution/v1/img_censor/v2/user_defined",
        IMAGE_OR_URL, url_field="imgUrl")
_censor("text_censor", "/rest/2.0/solution/v1/text_censor/v2/user_defined",
        required=("text",))
_censor("voice_censor", "/rest/2.0/solution/v1/voice_censor/v3/user_defined",
        IMAGE_OR_URL, source_field="base64", required=("fmt", "rate"))
_censor("video_censor", "/rest/2.0/solution/v1/video_censor/v2/user_defined",
        required=("name", "videoUrl", "extId"))
_censor("long_video_censor_submit", "/rest/2.0/solution/v1/video_censor/v1/video/submit",
        URL_ONLY, required=("extId",))
_censor("long_video_censor_pull", "/rest/2.0/solution/v1/video_censor/v1/video/pull",
        required=("taskId",))
_censor("async_voice_censor_submit", "/rest/2.0/solution/v1/async_voice/submit",
        URL_ONLY, required=("fmt", "rate"))
# pulled by taskId or by audioId
_censor("async_voice_censor_pull", "/rest/2.0/solution/v1/async_voice/pull")
_censor("live_censor_save", "/rest/2.0/solution/v1/live/v1/config/save",
        required=("streamUrl", "streamType", "extId", "startTime", "endTime", "streamName"))
_censor("live_censor_stop", "/rest/2.0/solution/v1/live/v1/config/stop", required=("taskId",))
_censor("live_censor_view", "/rest/2.0/solution/v1/live/v1/config/view", required=("taskId",))
_censor("live_censor_pull", "/rest/2.0/solution/v1/live/v1/audit/pull", required=("taskId",))


def get_endpoint(name: str) -> Endpoint:
    try:
        return ENDPOINTS[name]
    except KeyError:
        raise KeyError(
            f"Unknown endpoint {name!r}. Known endpoints: {', '.join(sorted(ENDPOINTS))}"
        ) from None

from __future__ import annotations

from labsite_admin.imports.serializer import serialize_worksheet
from labsite_admin.imports.submitter import TARGET_AWARDS, TARGET_GRADUATES, get_import_target

# Column headers the backend import endpoints read, in their expected order.
TEMPLATE_HEADERS: dict[str, tuple[str, ...]] = {
    TARGET_GRADUATES: (
        "序号",
        "姓名",
        "入学时间",
        "毕业时间",
        "指导老师",
        "学位",
        "学科",
        "论文题目",
        "是否有论文",
        "备注",
        "职位",
        "公司",
    ),
    TARGET_AWARDS: (
        "序号",
        "获奖人员",
        "获奖时间",
        "获奖名称及等级",
        "指导老师",
        "备注",
    ),
}

TEMPLATE_SHEET_NAMES = {
    TARGET_GRADUATES: "Graduates",
    TARGET_AWARDS: "Awards",
}


def template_file_name(target_key: str) -> str:
    target = get_import_target(target_key)
    return f"{target.key}_import_template.xlsx"


def build_import_template(target_key: str) -> bytes:
    target = get_import_target(target_key)
    headers = list(TEMPLATE_HEADERS[target.key])
    return serialize_worksheet([headers], TEMPLATE_SHEET_NAMES[target.key])

# File: crudgen/bodies/frontend.py
"""
crudgen - Frontend template bodies (Vue 3 + Naive UI)
======================================================
Render functions for the API client, the list view, the edit drawer
and the optional view modules. Generated layout::

    vue/<Business>/
        api/<business>.ts
        types/<business>.d.ts
        <business>/index.vue
        <business>/modules/drawer.vue
        <business>/modules/search.vue
        <business>/modules/tree-select.vue      (tree)
        <business>/modules/sub-table.vue        (sub)
        <business>/modules/<feature>.vue        (option-gated)
"""

from __future__ import annotations

from html import escape
from typing import List, Optional

from crudgen.bodies.common import (
    dict_call,
    file_header,
    find_column,
    finish,
    form_component,
    indent,
    is_range_query,
    ts_type,
)
from crudgen.models import (
    ColumnMetadata,
    ColumnOptions,
    HtmlType,
    TemplateContext,
)
from crudgen.utils import ts_string, upper_first

_DICT_IMPORT: str = "import { useDict } from '@/hooks/business/dict';"
_DICT_TAG_IMPORT: str = "import DictTag from '@/components/custom/dict-tag.vue';"


# ---------------------------------------------------------------------------
# Shared pieces
# ---------------------------------------------------------------------------


def _api_module(ctx: TemplateContext, depth: int) -> str:
    """Relative import path to the API client from a file *depth* dirs below vue/<Business>/."""
    return "../" * depth + f"api/{ctx.business_name}"


def _sub_list_field(ctx: TemplateContext) -> Optional[str]:
    return f"{ctx.sub.sub_table.class_name_lower}List" if ctx.sub else None


def _row_key(ctx: TemplateContext) -> str:
    return f"(row: {ctx.class_name}) => row.{ctx.pk_field}"


def _interface(name: str, columns: List[ColumnMetadata], extra: List[str] = ()) -> List[str]:
    lines: List[str] = [f"export interface {name} {{"]
    for col in columns:
        lines.append(f"  /** {col.label} */")
        lines.append(f"  {col.field_name}?: {ts_type(col, frontend=True)};")
    lines.extend(extra)
    lines.append("}")
    return lines


def _attr(text: str) -> str:
    """Double-quoted, HTML-escaped attribute value."""
    return '"' + escape(text, quote=True) + '"'


def _dict_options(col: ColumnMetadata) -> str:
    return f"dict[{ts_string(col.dict_type)}]" if col.dict_type else "[]"


def _search_control(col: ColumnMetadata) -> List[str]:
    f: str = col.field_name
    if is_range_query(col):
        return [
            f'<NDatePicker v-model:value="{f}Range" type="datetimerange" clearable />'
        ]
    if col.dict_type:
        return [
            f'<NSelect v-model:value="model.{f}" :options="{_dict_options(col)}" '
            'clearable class="w-180px" />'
        ]
    if col.language_type == "number":
        return [f'<NInputNumber v-model:value="model.{f}" clearable />']
    return [
        f'<NInput v-model:value="model.{f}" '
        f'placeholder={_attr(f"Enter {col.label}")} clearable />'
    ]


def _linkage_attrs(opt: ColumnOptions) -> str:
    if not opt.linkage_field or not opt.linkage_type:
        return ""
    value: str = ts_string(opt.linkage_value or "")
    match: str = f"model.{opt.linkage_field} === {value}"
    miss: str = f"model.{opt.linkage_field} !== {value}"
    return {
        "show": f' v-if="{match}"',
        "hide": f' v-if="{miss}"',
        "enable": f' :disabled="{miss}"',
        "disable": f' :disabled="{match}"',
    }[opt.linkage_type]


def _form_control(ctx: TemplateContext, col: ColumnMetadata, opt: ColumnOptions) -> str:
    f: str = col.field_name
    model: str = f'v-model:value="model.{f}"'
    attrs: List[str] = []
    if opt.form_placeholder:
        attrs.append(f"placeholder={_attr(opt.form_placeholder)}")
    if opt.form_disabled:
        attrs.append("disabled")
    if opt.form_readonly:
        attrs.append("readonly")
    suffix: str = (" " + " ".join(attrs)) if attrs else ""

    tree = ctx.tree
    if tree is not None and find_column(ctx, tree.tree_parent_code) == col:
        return f"<{ctx.class_name}TreeSelect {model}{suffix} />"

    html: str = col.html_type
    if html == HtmlType.TEXTAREA.value:
        return f'<NInput {model} type="textarea"{suffix} />'
    if html == HtmlType.SELECT.value:
        return f'<NSelect {model} :options="{_dict_options(col)}"{suffix} />'
    if html == HtmlType.RADIO.value:
        return (
            f'<NRadioGroup {model}{suffix}>'
            f'<NRadio v-for="item in {_dict_options(col)}" :key="item.value" '
            ':value="item.value" :label="item.label" /></NRadioGroup>'
        )
    if html == HtmlType.CHECKBOX.value:
        return (
            f'<NCheckboxGroup {model}{suffix}>'
            f'<NCheckbox v-for="item in {_dict_options(col)}" :key="item.value" '
            ':value="item.value" :label="item.label" /></NCheckboxGroup>'
        )
    if html in (HtmlType.DATETIME.value, HtmlType.DATE.value):
        kind: str = "datetime" if html == HtmlType.DATETIME.value else "date"
        return (
            f'<NDatePicker v-model:formatted-value="model.{f}" type="{kind}" '
            f'value-format="yyyy-MM-dd HH:mm:ss"{suffix} />'
        )
    if html in (HtmlType.IMAGE_UPLOAD.value, HtmlType.FILE_UPLOAD.value, HtmlType.UPLOAD.value):
        return f"<{form_component(col)} {model}{suffix} />"
    if html == HtmlType.EDITOR.value:
        return f"<Editor {model}{suffix} />"
    return f"<{form_component(col)} {model}{suffix} />"


def _column_def(ctx: TemplateContext, col: ColumnMetadata) -> List[str]:
    opt: ColumnOptions = ctx.column_option(col)
    lines: List[str] = ["{", f"  key: '{col.field_name}',", f"  title: {ts_string(col.label)},"]
    lines.append(f"  align: '{opt.column_align or 'center'}',")
    if opt.column_width:
        lines.append(f"  width: {opt.column_width},")
    if opt.column_fixed:
        lines.append(f"  fixed: '{opt.column_fixed}',")
    if opt.column_sortable:
        lines.append("  sorter: true,")
    if opt.column_ellipsis:
        lines.append("  ellipsis: { tooltip: true },")
    if ctx.options.frontend.enable_column_resize:
        lines.append("  resizable: true,")
    if col.dict_type:
        lines.append(
            f"  render: (row) => <DictTag options={{{_dict_options(col)}}} value={{row.{col.field_name}}} />,"
        )
    elif ctx.options.frontend.enable_inline_edit and col in ctx.edit_columns:
        lines.append(
            f"  render: (row) => <InlineEdit row={{row}} field=\"{col.field_name}\" onSaved={{getData}} />,"
        )
    lines.append("},")
    return lines


# ---------------------------------------------------------------------------
# api/<business>.ts
# ---------------------------------------------------------------------------


def _model_interfaces(ctx: TemplateContext) -> List[str]:
    """Row, search-params and page interfaces shared by api.ts and the .d.ts."""
    c: str = ctx.class_name
    is_tree: bool = ctx.tree is not None
    lines: List[str] = []

    extra: List[str] = []
    if ctx.sub is not None:
        sub = ctx.sub.sub_table
        extra.append(f"  {_sub_list_field(ctx)}?: {sub.class_name}[];")
        lines.extend(_interface(sub.class_name, list(sub.columns)))
        lines.append("")
    if is_tree:
        extra.append(f"  children?: {c}[];")
    lines.extend(_interface(c, list(ctx.columns), extra))
    lines.append("")

    search_extra: List[str] = []
    plain: List[ColumnMetadata] = []
    for col in ctx.query_columns:
        if is_range_query(col):
            pascal: str = upper_first(col.field_name)
            search_extra.append(f"  begin{pascal}?: string;")
            search_extra.append(f"  end{pascal}?: string;")
        else:
            plain.append(col)
    if not is_tree:
        search_extra.extend(["  pageNum?: number;", "  pageSize?: number;"])
    lines.extend(_interface(f"{c}SearchParams", plain, search_extra))
    lines.append("")
    if not is_tree:
        lines.append(f"export interface {c}List {{")
        lines.append(f"  rows: {c}[];")
        lines.append("  total: number;")
        lines.append("}")
        lines.append("")
    return lines


def render_api(ctx: TemplateContext) -> str:
    c: str = ctx.class_name
    url: str = ctx.api_path
    io = ctx.options.import_export
    is_tree: bool = ctx.tree is not None

    lines: List[str] = file_header(ctx, "API client")
    lines.append("import { request } from '@/service/request';")
    lines.append("")
    lines.extend(_model_interfaces(ctx))

    list_type: str = f"{c}[]" if is_tree else f"{c}List"
    pk_type: str = ts_type(ctx.pk_column, frontend=True) if ctx.pk_column else "number"

    def fn(doc: str, signature: str, generic: str, body: List[str]) -> None:
        lines.append(f"/** {doc} */")
        lines.append(f"export function {signature} {{")
        lines.append(f"  return request<{generic}>({{")
        lines.extend(indent(body, 2))
        lines.append("  });")
        lines.append("}")
        lines.append("")

    fn(f"List {ctx.function_name}", f"fetchGet{c}List(params?: {c}SearchParams)", list_type,
       [f"url: '{url}/list',", "method: 'get',", "params,"])
    fn(f"{ctx.function_name} detail", f"fetchGet{c}({ctx.pk_field}: {pk_type})", c,
       [f"url: `{url}/${{{ctx.pk_field}}}`,", "method: 'get',"])
    fn(f"Create {ctx.function_name}", f"fetchCreate{c}(data: Partial<{c}>)", "boolean",
       [f"url: '{url}',", "method: 'post',", "data,"])
    fn(f"Update {ctx.function_name}", f"fetchUpdate{c}(data: Partial<{c}>)", "boolean",
       [f"url: '{url}',", "method: 'put',", "data,"])
    fn(f"Delete {ctx.function_name}", f"fetchBatchDelete{c}(ids: {pk_type}[])", "boolean",
       [f"url: `{url}/${{ids.join(',')}}`,", "method: 'delete',"])
    if io.enable_export:
        fn(f"Export {ctx.function_name}", f"fetchExport{c}(data?: {c}SearchParams)", "Blob",
           [f"url: '{url}/export',", "method: 'post',", "data,", "responseType: 'blob',"])
    if io.enable_import:
        lines.append(f"/** Import {ctx.function_name} */")
        lines.append(f"export function fetchImport{c}(file: File) {{")
        lines.append("  const data = new FormData();")
        lines.append("  data.append('file', file);")
        lines.append("  return request<number>({")
        lines.append(f"    url: '{url}/import',")
        lines.append("    method: 'post',")
        lines.append("    data,")
        lines.append("    headers: { 'Content-Type': 'multipart/form-data' },")
        lines.append("  });")
        lines.append("}")
    return finish(lines)


# ---------------------------------------------------------------------------
# types/<business>.d.ts
# ---------------------------------------------------------------------------


def render_types(ctx: TemplateContext) -> str:
    """Ambient ``Api.<Business>`` namespace mirroring the api.ts interfaces."""
    body: List[str] = _model_interfaces(ctx)
    while body and not body[-1]:
        body.pop()

    lines: List[str] = file_header(ctx, "type declarations")
    lines.append("declare namespace Api {")
    lines.append(f"  namespace {ctx.business_pascal} {{")
    lines.extend(indent(body, 2))
    lines.append("  }")
    lines.append("}")
    return finish(lines)


# ---------------------------------------------------------------------------
# <business>/index.vue
# ---------------------------------------------------------------------------


def render_index(ctx: TemplateContext) -> str:
    c: str = ctx.class_name
    fe = ctx.options.frontend
    io = ctx.options.import_export
    is_tree: bool = ctx.tree is not None
    api: str = _api_module(ctx, 1)

    api_fns: List[str] = [f"fetchBatchDelete{c}", f"fetchGet{c}List"]
    if io.enable_export:
        api_fns.append(f"fetchExport{c}")

    s: List[str] = ['<script setup lang="tsx">']
    s.append("import { onMounted, reactive, ref } from 'vue';")
    s.append("import { NButton, NPopconfirm, NSpace } from 'naive-ui';")
    s.append("import type { DataTableColumns } from 'naive-ui';")
    s.append(f"import {{ {', '.join(sorted(api_fns))} }} from '{api}';")
    s.append(f"import type {{ {c}, {c}SearchParams }} from '{api}';")
    s.append(f"import {c}Drawer from './modules/drawer.vue';")
    s.append(f"import {c}Search from './modules/search.vue';")
    if ctx.has_dict:
        s.append(_DICT_IMPORT)
        s.append(_DICT_TAG_IMPORT)
    if ctx.sub is not None:
        s.append("import SubTable from './modules/sub-table.vue';")
    if ctx.options.search.enable_advanced_search:
        s.append("import AdvancedSearch from './modules/advanced-search.vue';")
    if fe.enable_column_toggle:
        s.append("import ColumnSetting from './modules/column-setting.vue';")
    if fe.enable_inline_edit:
        s.append("import InlineEdit from './modules/inline-edit.vue';")
    if fe.enable_batch_edit:
        s.append("import BatchEdit from './modules/batch-edit.vue';")
    if io.enable_import:
        s.append("import ImportModal from './modules/import-modal.vue';")
    s.append("")
    s.append(f"defineOptions({{ name: '{c}List' }});")
    s.append("")
    if ctx.has_dict:
        s.append(f"const dict = {dict_call(ctx)};")
    s.append("const loading = ref(false);")
    s.append(f"const data = ref<{c}[]>([]);")
    s.append("const checkedRowKeys = ref<any[]>([]);")
    s.append("const drawerVisible = ref(false);")
    s.append("const operateType = ref<'add' | 'edit'>('add');")
    s.append(f"const editingRow = ref<{c} | null>(null);")
    if not is_tree:
        s.append("const pagination = reactive({ page: 1, pageSize: 10, itemCount: 0 });")
    s.append(f"const searchParams = reactive<{c}SearchParams>({{")
    for col in ctx.query_columns:
        if not is_range_query(col):
            s.append(f"  {col.field_name}: undefined,")
    s.append("});")
    s.append("")

    s.append(f"const columns: DataTableColumns<{c}> = [")
    s.append("  { type: 'selection', align: 'center', width: 48 },")
    if ctx.sub is not None:
        s.append(
            f"  {{ type: 'expand', renderExpand: (row) => <SubTable rows={{row.{_sub_list_field(ctx)} ?? []}} /> }},"
        )
    for col in ctx.list_columns:
        s.extend(indent(_column_def(ctx, col)))
    s.append("  {")
    s.append("    key: 'operate',")
    s.append("    title: 'Operate',")
    s.append("    align: 'center',")
    s.append("    width: 130,")
    s.append("    render: (row) => (")
    s.append("      <NSpace justify=\"center\">")
    s.append("        <NButton size=\"small\" type=\"primary\" ghost onClick={() => handleEdit(row)}>Edit</NButton>")
    s.append(f"        <NPopconfirm onPositiveClick={{() => handleDelete([row.{ctx.pk_field}])}}>")
    s.append("          {{ default: () => 'Confirm delete?', trigger: () => <NButton size=\"small\" type=\"error\" ghost>Delete</NButton> }}")
    s.append("        </NPopconfirm>")
    s.append("      </NSpace>")
    s.append("    ),")
    s.append("  },")
    s.append("];")
    if fe.enable_column_toggle:
        s.append("const visibleColumns = ref(columns);")
    s.append("")

    s.append("async function getData() {")
    s.append("  loading.value = true;")
    if is_tree:
        s.append(f"  const {{ data: rows }} = await fetchGet{c}List(searchParams);")
        s.append("  data.value = rows ?? [];")
    else:
        s.append(f"  const {{ data: page }} = await fetchGet{c}List({{")
        s.append("    ...searchParams,")
        s.append("    pageNum: pagination.page,")
        s.append("    pageSize: pagination.pageSize,")
        s.append("  });")
        s.append("  data.value = page?.rows ?? [];")
        s.append("  pagination.itemCount = page?.total ?? 0;")
    s.append("  loading.value = false;")
    s.append("}")
    s.append("")
    s.append("function handleAdd() {")
    s.append("  operateType.value = 'add';")
    s.append("  editingRow.value = null;")
    s.append("  drawerVisible.value = true;")
    s.append("}")
    s.append("")
    s.append(f"function handleEdit(row: {c}) {{")
    s.append("  operateType.value = 'edit';")
    s.append("  editingRow.value = { ...row };")
    s.append("  drawerVisible.value = true;")
    s.append("}")
    s.append("")
    s.append("async function handleDelete(ids: any[]) {")
    s.append(f"  await fetchBatchDelete{c}(ids);")
    s.append("  checkedRowKeys.value = [];")
    s.append("  getData();")
    s.append("}")
    if io.enable_export:
        file_name: str = io.export_file_name or ctx.function_name
        s.append("")
        s.append("async function handleExport() {")
        s.append(f"  const {{ data: blob }} = await fetchExport{c}(searchParams);")
        s.append("  if (!blob) return;")
        s.append("  const link = document.createElement('a');")
        s.append("  link.href = URL.createObjectURL(blob);")
        s.append(f"  link.download = `{file_name}_${{Date.now()}}.xlsx`;")
        s.append("  link.click();")
        s.append("  URL.revokeObjectURL(link.href);")
        s.append("}")
    s.append("")
    s.append("onMounted(getData);")
    s.append("</script>")
    s.append("")

    t: List[str] = ["<template>", '  <div class="flex-col gap-16px">']
    search_tag: str = f'<{c}Search v-model:model="searchParams" @search="getData" @reset="getData"'
    if ctx.options.search.enable_advanced_search:
        t.append(f"    {search_tag}>")
        t.append('      <AdvancedSearch @search="getData" />')
        t.append(f"    </{c}Search>")
    else:
        t.append(f"    {search_tag} />")
    t.append(f'    <NCard title={_attr(ctx.function_name)} :bordered="false" size="small">')
    t.append("      <template #header-extra>")
    t.append("        <NSpace>")
    t.append('          <NButton type="primary" ghost @click="handleAdd">Add</NButton>')
    t.append(
        '          <NButton type="error" ghost :disabled="!checkedRowKeys.length" '
        '@click="handleDelete(checkedRowKeys)">Delete</NButton>'
    )
    if fe.enable_batch_edit:
        t.append('          <BatchEdit :ids="checkedRowKeys" @submitted="getData" />')
    if io.enable_export:
        t.append('          <NButton ghost @click="handleExport">Export</NButton>')
    if io.enable_import:
        t.append('          <ImportModal @imported="getData" />')
    if fe.enable_column_toggle:
        t.append('          <ColumnSetting v-model:columns="visibleColumns" />')
    t.append("        </NSpace>")
    t.append("      </template>")
    t.append("      <NDataTable")
    t.append("        v-model:checked-row-keys=\"checkedRowKeys\"")
    t.append(f"        :columns=\"{'visibleColumns' if fe.enable_column_toggle else 'columns'}\"")
    t.append("        :data=\"data\"")
    t.append("        :loading=\"loading\"")
    t.append(f"        :row-key=\"{_row_key(ctx)}\"")
    if is_tree:
        t.append("        children-key=\"children\"")
        t.append("        default-expand-all")
    else:
        t.append("        remote")
        t.append("        :pagination=\"pagination\"")
        t.append("        @update:page=\"(page) => { pagination.page = page; getData(); }\"")
    if fe.table_height:
        t.append(f"        :max-height=\"{fe.table_height}\"")
    t.append("      />")
    t.append("    </NCard>")
    t.append(
        f'    <{c}Drawer v-model:visible="drawerVisible" :operate-type="operateType" '
        ':row-data="editingRow" @submitted="getData" />'
    )
    t.append("  </div>")
    t.append("</template>")
    return finish(s + t)


# ---------------------------------------------------------------------------
# <business>/modules/drawer.vue
# ---------------------------------------------------------------------------


def render_dialog(ctx: TemplateContext) -> str:
    c: str = ctx.class_name
    api: str = _api_module(ctx, 2)
    insert_names = {col.column_name for col in ctx.insert_columns}
    edit_names = {col.column_name for col in ctx.edit_columns}

    s: List[str] = ['<script setup lang="ts">']
    s.append("import { computed, reactive, ref, watch } from 'vue';")
    s.append("import type { FormInst, FormRules } from 'naive-ui';")
    s.append(f"import {{ fetchCreate{c}, fetchUpdate{c} }} from '{api}';")
    s.append(f"import type {{ {c} }} from '{api}';")
    if ctx.has_dict:
        s.append(_DICT_IMPORT)
    if ctx.tree is not None:
        s.append(f"import {c}TreeSelect from './tree-select.vue';")
    if ctx.sub is not None:
        s.append("import SubTable from './sub-table.vue';")
    s.append("")
    s.append(f"defineOptions({{ name: '{c}Drawer' }});")
    s.append("")
    s.append("interface Props {")
    s.append("  operateType: 'add' | 'edit';")
    s.append(f"  rowData?: {c} | null;")
    s.append("}")
    s.append("const props = defineProps<Props>();")
    s.append("const emit = defineEmits<{ submitted: [] }>();")
    s.append("const visible = defineModel<boolean>('visible', { default: false });")
    if ctx.has_dict:
        s.append(f"const dict = {dict_call(ctx)};")
    s.append("const formRef = ref<FormInst | null>(null);")
    s.append("const title = computed(() => (props.operateType === 'add' ? "
             f"{ts_string('Add ' + ctx.function_name)} : {ts_string('Edit ' + ctx.function_name)}));")
    s.append("")
    s.append(f"function createDefaultModel(): Partial<{c}> {{")
    s.append("  return {")
    for col in ctx.form_columns:
        opt = ctx.column_option(col)
        default: Optional[str] = opt.form_default_value or col.default_value
        if default is None:
            value: str = "undefined"
        elif col.language_type == "number":
            value = default if default.replace(".", "", 1).lstrip("-").isdigit() else "undefined"
        elif col.language_type == "boolean":
            value = "true" if default.lower() in ("true", "1", "t") else "false"
        else:
            value = ts_string(default)
        s.append(f"    {col.field_name}: {value},")
    if ctx.sub is not None:
        s.append(f"    {_sub_list_field(ctx)}: [],")
    s.append("  };")
    s.append("}")
    s.append("")
    s.append(f"const model = reactive<Partial<{c}>>(createDefaultModel());")
    s.append("")
    s.append("const rules: FormRules = {")
    for col in ctx.form_columns:
        opt = ctx.column_option(col)
        required: bool = opt.is_required if opt.is_required is not None else (
            not col.is_nullable and col.default_value is None
        )
        if required:
            message: str = opt.validation_message or f"{col.label} is required"
            s.append(f"  {col.field_name}: {{ required: true, message: {ts_string(message)}, trigger: ['input', 'blur'] }},")
    s.append("};")
    s.append("")
    s.append("watch(visible, (open) => {")
    s.append("  if (!open) return;")
    s.append("  Object.assign(model, createDefaultModel());")
    s.append("  if (props.operateType === 'edit' && props.rowData) {")
    s.append("    Object.assign(model, props.rowData);")
    s.append("  }")
    s.append("});")
    s.append("")
    s.append("async function handleSubmit() {")
    s.append("  await formRef.value?.validate();")
    s.append("  if (props.operateType === 'add') {")
    s.append(f"    await fetchCreate{c}(model);")
    s.append("  } else {")
    s.append(f"    await fetchUpdate{c}(model);")
    s.append("  }")
    s.append("  visible.value = false;")
    s.append("  emit('submitted');")
    s.append("}")
    s.append("</script>")
    s.append("")

    t: List[str] = ["<template>"]
    t.append('  <NDrawer v-model:show="visible" :width="640" display-directive="show">')
    t.append("    <NDrawerContent :title=\"title\" closable>")
    t.append('      <NForm ref="formRef" :model="model" :rules="rules" label-placement="left" :label-width="100">')
    t.append('        <NGrid :cols="24" :x-gap="16">')
    for col in ctx.form_columns:
        opt = ctx.column_option(col)
        span: int = opt.form_col_span or 24
        cond: str = ""
        if col.column_name in insert_names and col.column_name not in edit_names:
            cond = " v-if=\"operateType === 'add'\""
        elif col.column_name in edit_names and col.column_name not in insert_names:
            cond = " v-if=\"operateType === 'edit'\""
        linkage: str = _linkage_attrs(opt)
        if cond and linkage.startswith(" v-if"):
            linkage = linkage.replace(' v-if="', ' v-show="', 1)
        lbl: str = _attr(col.label)
        t.append(f"          <NFormItemGi :span=\"{span}\" label={lbl} path=\"{col.field_name}\"{cond}{linkage}>")
        t.append(f"            {_form_control(ctx, col, opt)}")
        t.append("          </NFormItemGi>")
    if ctx.sub is not None:
        t.append(f'          <NFormItemGi :span="24" label="Details" path="{_sub_list_field(ctx)}">')
        t.append(f'            <SubTable v-model:rows="model.{_sub_list_field(ctx)}" editable />')
        t.append("          </NFormItemGi>")
    t.append("        </NGrid>")
    t.append("      </NForm>")
    t.append("      <template #footer>")
    t.append("        <NSpace :size=\"16\">")
    t.append('          <NButton @click="visible = false">Cancel</NButton>')
    t.append('          <NButton type="primary" @click="handleSubmit">Confirm</NButton>')
    t.append("        </NSpace>")
    t.append("      </template>")
    t.append("    </NDrawerContent>")
    t.append("  </NDrawer>")
    t.append("</template>")
    return finish(s + t)


# ---------------------------------------------------------------------------
# <business>/modules/search.vue
# ---------------------------------------------------------------------------


def render_search(ctx: TemplateContext) -> str:
    """Query form bound to the list view's search params via ``v-model:model``."""
    c: str = ctx.class_name
    ranges: List[ColumnMetadata] = [col for col in ctx.query_columns if is_range_query(col)]
    dict_types: List[str] = sorted({col.dict_type for col in ctx.query_columns if col.dict_type})

    s: List[str] = ['<script setup lang="ts">']
    if ranges:
        s.append("import { ref } from 'vue';")
    s.append(f"import type {{ {c}SearchParams }} from '{_api_module(ctx, 2)}';")
    if dict_types:
        s.append(_DICT_IMPORT)
    s.append("")
    s.append(f"defineOptions({{ name: '{c}Search' }});")
    s.append("")
    s.append("const emit = defineEmits<{ search: []; reset: [] }>();")
    s.append(f"const model = defineModel<{c}SearchParams>('model', {{ required: true }});")
    if dict_types:
        s.append("const dict = useDict(" + ", ".join(ts_string(d) for d in dict_types) + ");")
    for col in ranges:
        s.append(f"const {col.field_name}Range = ref<[number, number] | null>(null);")
    s.append("")
    if ranges:
        s.append("function toIso(value?: number) {")
        s.append("  return value === undefined ? undefined : new Date(value).toISOString();")
        s.append("}")
        s.append("")
    s.append("function handleSearch() {")
    for col in ranges:
        pascal: str = upper_first(col.field_name)
        s.append(f"  model.value.begin{pascal} = toIso({col.field_name}Range.value?.[0]);")
        s.append(f"  model.value.end{pascal} = toIso({col.field_name}Range.value?.[1]);")
    s.append("  emit('search');")
    s.append("}")
    s.append("")
    s.append("function handleReset() {")
    s.append("  Object.keys(model.value).forEach((key) => {")
    s.append(f"    model.value[key as keyof {c}SearchParams] = undefined;")
    s.append("  });")
    for col in ranges:
        s.append(f"  {col.field_name}Range.value = null;")
    s.append("  emit('reset');")
    s.append("}")
    s.append("</script>")
    s.append("")

    t: List[str] = ["<template>", '  <NCard :bordered="false" size="small">']
    t.append('    <NForm inline :model="model" label-placement="left">')
    for col in ctx.query_columns:
        t.append(f"      <NFormItem label={_attr(col.label)} path=\"{col.field_name}\">")
        t.extend(indent(_search_control(col), 4))
        t.append("      </NFormItem>")
    t.append("      <NFormItem>")
    t.append("        <NSpace>")
    t.append('          <NButton type="primary" @click="handleSearch">Search</NButton>')
    t.append('          <NButton @click="handleReset">Reset</NButton>')
    t.append("          <slot />")
    t.append("        </NSpace>")
    t.append("      </NFormItem>")
    t.append("    </NForm>")
    t.append("  </NCard>")
    t.append("</template>")
    return finish(s + t)


# ---------------------------------------------------------------------------
# <business>/modules/tree-select.vue
# ---------------------------------------------------------------------------


def render_tree_select(ctx: TemplateContext) -> str:
    tree = ctx.tree
    assert tree is not None
    c: str = ctx.class_name
    code_col = find_column(ctx, tree.tree_code)
    key_field: str = code_col.field_name if code_col else tree.tree_code

    lines: List[str] = ['<script setup lang="ts">']
    lines.append("import { onMounted, ref } from 'vue';")
    lines.append(f"import {{ fetchGet{c}List }} from '{_api_module(ctx, 2)}';")
    lines.append(f"import type {{ {c} }} from '{_api_module(ctx, 2)}';")
    lines.append("")
    lines.append(f"defineOptions({{ name: '{c}TreeSelect' }});")
    lines.append("")
    lines.append("const value = defineModel<any>('value');")
    lines.append(f"const options = ref<{c}[]>([]);")
    lines.append("")
    lines.append("onMounted(async () => {")
    lines.append(f"  const {{ data }} = await fetchGet{c}List();")
    lines.append("  options.value = data ?? [];")
    lines.append("});")
    lines.append("</script>")
    lines.append("")
    lines.append("<template>")
    lines.append("  <NTreeSelect")
    lines.append('    v-model:value="value"')
    lines.append('    :options="options"')
    lines.append(f'    key-field="{key_field}"')
    lines.append('    label-field="label"')
    lines.append('    children-field="children"')
    lines.append("    clearable")
    lines.append("    default-expand-all")
    lines.append("  />")
    lines.append("</template>")
    return finish(lines)


# ---------------------------------------------------------------------------
# <business>/modules/sub-table.vue
# ---------------------------------------------------------------------------


def render_sub_table(ctx: TemplateContext) -> str:
    sub = ctx.sub
    assert sub is not None
    sc: str = sub.sub_table.class_name
    fk: str = sub.fk_column.column_name
    shown: List[ColumnMetadata] = [
        col for col in sub.sub_table.classified.list_columns if col.column_name != fk
    ]

    s: List[str] = ['<script setup lang="tsx">']
    s.append("import { NButton, NInput, NInputNumber } from 'naive-ui';")
    s.append("import type { DataTableColumns } from 'naive-ui';")
    s.append(f"import type {{ {sc} }} from '{_api_module(ctx, 2)}';")
    s.append("")
    s.append(f"defineOptions({{ name: '{sc}SubTable' }});")
    s.append("")
    s.append("const props = defineProps<{ editable?: boolean }>();")
    s.append(f"const rows = defineModel<{sc}[]>('rows', {{ default: () => [] }});")
    s.append("")
    s.append(f"const columns: DataTableColumns<{sc}> = [")
    for col in shown:
        control: str = "NInputNumber" if col.language_type == "number" else "NInput"
        s.append("  {")
        s.append(f"    key: '{col.field_name}',")
        s.append(f"    title: {ts_string(col.label)},")
        s.append("    render: (row) =>")
        s.append(f"      props.editable ? <{control} value={{row.{col.field_name} as any}} onUpdateValue={{(v: any) => (row.{col.field_name} = v)}} /> : String(row.{col.field_name} ?? ''),")
        s.append("  },")
    s.append("  {")
    s.append("    key: 'operate',")
    s.append("    title: '',")
    s.append("    width: 80,")
    s.append("    render: (_row, index) =>")
    s.append("      props.editable ? <NButton size=\"small\" type=\"error\" text onClick={() => rows.value.splice(index, 1)}>Remove</NButton> : null,")
    s.append("  },")
    s.append("];")
    s.append("")
    s.append("function addRow() {")
    s.append(f"  rows.value.push({{}} as {sc});")
    s.append("}")
    s.append("</script>")
    s.append("")
    s.append("<template>")
    s.append('  <div class="flex-col gap-8px">')
    s.append('    <NDataTable :columns="columns" :data="rows" size="small" />')
    s.append('    <NButton v-if="editable" dashed block @click="addRow">Add row</NButton>')
    s.append("  </div>")
    s.append("</template>")
    return finish(s)


# ---------------------------------------------------------------------------
# Option-gated modules
# ---------------------------------------------------------------------------


def render_advanced_search(ctx: TemplateContext) -> str:
    fields: List[ColumnMetadata] = list(ctx.list_columns) or list(ctx.query_columns)
    s: List[str] = ['<script setup lang="ts">']
    s.append("import { reactive, ref } from 'vue';")
    s.append("")
    s.append("defineOptions({ name: 'AdvancedSearch' });")
    s.append("")
    s.append("interface Condition {")
    s.append("  field: string;")
    s.append("  operator: 'equals' | 'contains' | 'gt' | 'lt' | 'not';")
    s.append("  value: string;")
    s.append("}")
    s.append("")
    s.append("const emit = defineEmits<{ search: [conditions: Condition[]] }>();")
    s.append("const visible = ref(false);")
    s.append("const conditions = reactive<Condition[]>([]);")
    s.append("const fieldOptions = [")
    for col in fields:
        s.append(f"  {{ label: {ts_string(col.label)}, value: '{col.field_name}' }},")
    s.append("];")
    s.append("const operatorOptions = ['equals', 'contains', 'gt', 'lt', 'not'].map((value) => ({ label: value, value }));")
    s.append("")
    s.append("function addCondition() {")
    s.append("  conditions.push({ field: fieldOptions[0]?.value ?? '', operator: 'equals', value: '' });")
    s.append("}")
    s.append("")
    s.append("function handleSearch() {")
    s.append("  emit('search', conditions.filter((item) => item.value !== ''));")
    s.append("  visible.value = false;")
    s.append("}")
    s.append("</script>")
    s.append("")
    s.append("<template>")
    s.append('  <NButton @click="visible = true">Advanced</NButton>')
    s.append('  <NModal v-model:show="visible" preset="card" title="Advanced search" class="w-640px">')
    s.append('    <div class="flex-col gap-8px">')
    s.append('      <NSpace v-for="(item, index) in conditions" :key="index">')
    s.append('        <NSelect v-model:value="item.field" :options="fieldOptions" class="w-180px" />')
    s.append('        <NSelect v-model:value="item.operator" :options="operatorOptions" class="w-120px" />')
    s.append('        <NInput v-model:value="item.value" />')
    s.append('        <NButton text type="error" @click="conditions.splice(index, 1)">Remove</NButton>')
    s.append("      </NSpace>")
    s.append('      <NButton dashed @click="addCondition">Add condition</NButton>')
    s.append("    </div>")
    s.append("    <template #footer>")
    s.append('      <NButton type="primary" @click="handleSearch">Search</NButton>')
    s.append("    </template>")
    s.append("  </NModal>")
    s.append("</template>")
    return finish(s)


def render_column_setting(ctx: TemplateContext) -> str:
    s: List[str] = ['<script setup lang="ts">']
    s.append("import { ref, watch } from 'vue';")
    s.append("import type { DataTableColumns } from 'naive-ui';")
    s.append("")
    s.append("defineOptions({ name: 'ColumnSetting' });")
    s.append("")
    s.append("const columns = defineModel<DataTableColumns<any>>('columns', { required: true });")
    s.append("const all = [...columns.value];")
    s.append("const checked = ref<string[]>(all.map((col: any) => col.key).filter(Boolean));")
    s.append("")
    s.append("watch(checked, (keys) => {")
    s.append("  columns.value = all.filter((col: any) => !col.key || keys.includes(col.key));")
    s.append("});")
    s.append("</script>")
    s.append("")
    s.append("<template>")
    s.append('  <NPopover placement="bottom-end" trigger="click">')
    s.append("    <template #trigger>")
    s.append("      <NButton ghost>Columns</NButton>")
    s.append("    </template>")
    s.append('    <NCheckboxGroup v-model:value="checked">')
    s.append('      <div class="flex-col gap-4px">')
    for col in ctx.list_columns:
        s.append(f'        <NCheckbox value="{col.field_name}" label={_attr(col.label)} />')
    s.append("      </div>")
    s.append("    </NCheckboxGroup>")
    s.append("  </NPopover>")
    s.append("</template>")
    return finish(s)


def render_inline_edit(ctx: TemplateContext) -> str:
    c: str = ctx.class_name
    api: str = _api_module(ctx, 2)
    s: List[str] = ['<script setup lang="ts">']
    s.append("import { ref } from 'vue';")
    s.append(f"import {{ fetchUpdate{c} }} from '{api}';")
    s.append(f"import type {{ {c} }} from '{api}';")
    s.append("")
    s.append("defineOptions({ name: 'InlineEdit' });")
    s.append("")
    s.append(f"const props = defineProps<{{ row: {c}; field: keyof {c} }}>();")
    s.append("const emit = defineEmits<{ saved: [] }>();")
    s.append("const editing = ref(false);")
    s.append("const draft = ref<any>(null);")
    s.append("")
    s.append("function start() {")
    s.append("  draft.value = props.row[props.field];")
    s.append("  editing.value = true;")
    s.append("}")
    s.append("")
    s.append("async function save() {")
    s.append("  editing.value = false;")
    s.append("  if (draft.value === props.row[props.field]) return;")
    s.append(f"  await fetchUpdate{c}({{ {ctx.pk_field}: props.row.{ctx.pk_field}, [props.field]: draft.value }});")
    s.append("  emit('saved');")
    s.append("}")
    s.append("</script>")
    s.append("")
    s.append("<template>")
    s.append('  <NInput v-if="editing" v-model:value="draft" size="small" autofocus @blur="save" @keyup.enter="save" />')
    s.append('  <span v-else class="cursor-pointer" @dblclick="start">{{ row[field] }}</span>')
    s.append("</template>")
    return finish(s)


def render_batch_edit(ctx: TemplateContext) -> str:
    c: str = ctx.class_name
    s: List[str] = ['<script setup lang="ts">']
    s.append("import { ref } from 'vue';")
    s.append(f"import {{ fetchUpdate{c} }} from '{_api_module(ctx, 2)}';")
    s.append("")
    s.append("defineOptions({ name: 'BatchEdit' });")
    s.append("")
    s.append("const props = defineProps<{ ids: any[] }>();")
    s.append("const emit = defineEmits<{ submitted: [] }>();")
    s.append("const visible = ref(false);")
    s.append("const field = ref<string | null>(null);")
    s.append("const value = ref<any>(null);")
    s.append("const fieldOptions = [")
    for col in ctx.edit_columns:
        s.append(f"  {{ label: {ts_string(col.label)}, value: '{col.field_name}' }},")
    s.append("];")
    s.append("")
    s.append("async function handleSubmit() {")
    s.append("  if (!field.value) return;")
    s.append("  for (const id of props.ids) {")
    s.append(f"    await fetchUpdate{c}({{ {ctx.pk_field}: id, [field.value]: value.value }});")
    s.append("  }")
    s.append("  visible.value = false;")
    s.append("  emit('submitted');")
    s.append("}")
    s.append("</script>")
    s.append("")
    s.append("<template>")
    s.append('  <NButton ghost :disabled="!ids.length" @click="visible = true">Batch edit</NButton>')
    s.append('  <NModal v-model:show="visible" preset="card" title="Batch edit" class="w-480px">')
    s.append('    <NForm label-placement="left" :label-width="80">')
    s.append('      <NFormItem label="Field">')
    s.append('        <NSelect v-model:value="field" :options="fieldOptions" />')
    s.append("      </NFormItem>")
    s.append('      <NFormItem label="Value">')
    s.append('        <NInput v-model:value="value" />')
    s.append("      </NFormItem>")
    s.append("    </NForm>")
    s.append("    <template #footer>")
    s.append('      <NButton type="primary" @click="handleSubmit">Apply</NButton>')
    s.append("    </template>")
    s.append("  </NModal>")
    s.append("</template>")
    return finish(s)


def render_import_modal(ctx: TemplateContext) -> str:
    c: str = ctx.class_name
    s: List[str] = ['<script setup lang="ts">']
    s.append("import { ref } from 'vue';")
    s.append("import type { UploadFileInfo } from 'naive-ui';")
    s.append(f"import {{ fetchImport{c} }} from '{_api_module(ctx, 2)}';")
    s.append("")
    s.append("defineOptions({ name: 'ImportModal' });")
    s.append("")
    s.append("const emit = defineEmits<{ imported: [count: number] }>();")
    s.append("const visible = ref(false);")
    s.append("const fileList = ref<UploadFileInfo[]>([]);")
    s.append("")
    s.append("async function handleImport() {")
    s.append("  const file = fileList.value[0]?.file;")
    s.append("  if (!file) return;")
    s.append(f"  const {{ data: count }} = await fetchImport{c}(file);")
    s.append("  visible.value = false;")
    s.append("  fileList.value = [];")
    s.append("  emit('imported', count ?? 0);")
    s.append("}")
    s.append("</script>")
    s.append("")
    s.append("<template>")
    s.append('  <NButton ghost @click="visible = true">Import</NButton>')
    s.append(f'  <NModal v-model:show="visible" preset="card" title={_attr("Import " + ctx.function_name)} class="w-480px">')
    s.append('    <NUpload v-model:file-list="fileList" :max="1" accept=".xlsx,.xls" :default-upload="false">')
    s.append("      <NUploadDragger>Drop an Excel file here or click to choose</NUploadDragger>")
    s.append("    </NUpload>")
    s.append("    <template #footer>")
    s.append('      <NButton type="primary" :disabled="!fileList.length" @click="handleImport">Import</NButton>')
    s.append("    </template>")
    s.append("  </NModal>")
    s.append("</template>")
    return finish(s)


__all__: List[str] = [
    "render_api",
    "render_index",
    "render_dialog",
    "render_search",
    "render_types",
    "render_tree_select",
    "render_sub_table",
    "render_advanced_search",
    "render_column_setting",
    "render_inline_edit",
    "render_batch_edit",
    "render_import_modal",
]

# catalog_service/routes.py
from flask import Blueprint, current_app, redirect, render_template, request

from .controller import Page

catalog_bp = Blueprint("catalog", __name__, url_prefix="/catalog")


# ---------------------------------------------------------
# Helpers
# ---------------------------------------------------------

def _catalog():
    return current_app.extensions["catalog"]


def _fields():
    """
    Write-flow input from a JSON body or a form post. Repeated form
    ``genre`` values (checkboxes) are kept as a list.
    """
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    fields = request.form.to_dict()
    if "genre" in request.form:
        fields["genre"] = request.form.getlist("genre")
    return fields


def respond(result):
    if isinstance(result, Page):
        return render_template(result.template, **result.context), result.status
    return redirect(result.location)


def _register_entity(singular, plural, controller_name, id_name):
    """
    Wire the five lifecycle flows of one entity kind:
      GET       /<plural>                 list
      GET/POST  /<singular>/create        create form / create
      GET       /<singular>/<id>          detail
      GET/POST  /<singular>/<id>/delete   confirmation / delete
      GET/POST  /<singular>/<id>/update   edit form / update
    """

    def controller():
        return getattr(_catalog(), controller_name)

    def list_view():
        return respond(controller().list())

    def create_view():
        if request.method == "POST":
            return respond(controller().create(_fields()))
        return respond(controller().create_form())

    def detail_view(**kwargs):
        return respond(controller().detail(kwargs[id_name]))

    def delete_view(**kwargs):
        if request.method == "POST":
            return respond(controller().delete(kwargs[id_name], _fields()))
        return respond(controller().delete_form(kwargs[id_name]))

    def update_view(**kwargs):
        if request.method == "POST":
            return respond(controller().update(kwargs[id_name], _fields()))
        return respond(controller().update_form(kwargs[id_name]))

    catalog_bp.add_url_rule(f"/{plural}", f"{singular}_list", list_view)
    catalog_bp.add_url_rule(
        f"/{singular}/create", f"{singular}_create", create_view, methods=["GET", "POST"]
    )
    catalog_bp.add_url_rule(f"/{singular}/<{id_name}>", f"{singular}_detail", detail_view)
    catalog_bp.add_url_rule(
        f"/{singular}/<{id_name}>/delete",
        f"{singular}_delete",
        delete_view,
        methods=["GET", "POST"],
    )
    catalog_bp.add_url_rule(
        f"/{singular}/<{id_name}>/update",
        f"{singular}_update",
        update_view,
        methods=["GET", "POST"],
    )


@catalog_bp.get("/")
def index():
    return respond(_catalog().home.index())


_register_entity("book", "books", "books", "book_id")
_register_entity("author", "authors", "authors", "author_id")
_register_entity("genre", "genres", "genres", "genre_id")
_register_entity("bookinstance", "bookinstances", "copies", "bookinstance_id")

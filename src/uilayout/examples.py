"""
Example layouts used by the demo script and the test suite.

    build_example_profile_layout()    Section/Subsection form page
    build_example_dashboard_layout()  header slots, tabs, accordion, wizard
    register_examples(registry)       both, as registry definitions
"""
from uilayout.components import FormSection, make_component
from uilayout.layout import Layout, LayoutBuilder
from uilayout.model import Field
from uilayout.registry import LayoutRegistry


def configure_profile(builder: LayoutBuilder) -> LayoutBuilder:
    (builder
        .section("personal_info")
            .with_label("Personal Information")
            .with_description("Manage your personal details")
            .with_icon("user")
            .with_columns(2)
            .subsection("basic")
                .with_label("Basic Details")
                .field("first_name").with_label("First Name").required().with_max_length(50).end()
                .field("last_name").with_label("Last Name").required().with_max_length(50).end()
                .field("email", "email").with_label("Email Address").required().end()
                .field("phone").with_label("Phone Number").required_when("contact_method", "==", "phone").end()
            .end_subsection()
            .subsection("address")
                .with_label("Address Information")
                .field("country", "select").with_label("Country").with_options({"US": "United States", "CA": "Canada"}).end()
                .field("state", "select").with_label("State")
                    .depends_on("country", "/api/states", {"country": "{country}"})
                    .show_when("country", "==", "US")
                    .end()
                .field("zip").with_label("ZIP Code").with_max_length(10).end()
            .end_subsection()
        .end_section())

    (builder
        .section("account_settings")
            .with_label("Account Settings")
            .with_icon("settings")
            .subsection("security")
                .with_label("Security")
                .require_permissions("users.security")
                .field("two_factor", "checkbox").with_label("Two-factor authentication").end()
            .end_subsection()
            .subsection("admin")
                .with_label("Administration")
                .require_roles("admin")
                .field("account_status", "select")
                    .with_label("Status")
                    .with_options({"active": "Active", "suspended": "Suspended"})
                    .editable_for_roles("admin")
                    .end()
            .end_subsection()
        .end_section())

    return builder.with_meta(version="1.0")


def configure_dashboard(builder: LayoutBuilder) -> LayoutBuilder:
    header = builder.header_section("page_header").sticky()
    (header.section("left")
        .text("page_title", content="Dashboard")
        .end_section()
     .section("right")
        .component("button", "logout", label="Log out", url="/logout"))

    (builder.grid_section("stats")
        .with_columns(4)
        .add_components([
            make_component("stats", "users_count", label="Users").with_data_url("/api/stats/users"),
            make_component("stats", "revenue", label="Revenue").require_permissions("finance.view"),
        ]))

    profile_form = FormSection.make("profile_form").with_label("Profile")
    profile_form.field("display_name").required().with_min_length(3).with_max_length(40)
    profile_form.field("bio", "textarea").with_max_length(500)

    billing_form = FormSection.make("billing_form").with_label("Billing")
    billing_form.field("subtotal", "number")
    billing_form.field("tax", "number").computed(lambda data: round(float(data.get("subtotal") or 0) * 0.2, 2))
    billing_form.field("total", "number").computed(
        lambda data: float(data.get("subtotal") or 0) + float(data.get("tax") or 0)
    )

    (builder.tabs_section("settings_tabs")
        .add_tab("profile", "Profile", [profile_form], icon="user")
        .add_tab("billing", "Billing", [billing_form], permissions=["billing.view"]))

    (builder.accordion_section("help")
        .add_item("faq", "FAQ", lambda slot: slot.text("faq_text", content="Frequently asked questions"))
        .add_item("audit", "Audit trail", lambda slot: slot.table("audit_log"), roles=["admin"]))

    wizard = builder.wizard_section("onboarding").with_linear(True)
    wizard.add_step("account", "Account", [
        FormSection.make("account_form").add_fields([
            Field.make("username").required(),
            Field.make("password", field_type="password").required().with_min_length(8),
        ])
    ])
    wizard.add_step("plan", "Plan", lambda slot: slot.card("plan_picker").show_when("user.role != guest"))
    wizard.add_step("confirm", "Confirm", [], optional=True)

    return builder.with_shared_data_url("/api/dashboard").with_meta(title="Dashboard")


def build_example_profile_layout() -> Layout:
    return configure_profile(LayoutBuilder.create("user", "profile")).build()


def build_example_dashboard_layout() -> Layout:
    return configure_dashboard(LayoutBuilder.create("admin", "dashboard")).build()


def register_examples(registry: LayoutRegistry) -> LayoutRegistry:
    registry.register("user", "profile", configure_profile)
    registry.register("admin", "dashboard", configure_dashboard)
    return registry

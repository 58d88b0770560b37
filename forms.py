from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField, BooleanField, IntegerField
from wtforms.validators import DataRequired, InputRequired, Email, EqualTo, Length, Optional, NumberRange, ValidationError
from models.brand import Brand
from models.customer import Customer
from models.influencer import Influencer

# Flask-WTF reads the JSON body of the request when it is not form-encoded, so these
# forms validate the JSON payloads posted by API clients directly.


def _email_taken_by_brand_or_influencer(email):
    email = (email or '').strip().lower()
    return bool(Brand.query.filter_by(email=email).first() or Influencer.query.filter_by(email=email).first())


class SignInForm(FlaskForm):
    """Shared sign-in form for brands, influencers and customers."""
    email = StringField('Email', validators=[DataRequired(message="Email is required."), Email(message="Invalid email address.")])
    password = PasswordField('Password', validators=[DataRequired(message="Password is required.")])
    remember_me = BooleanField('Remember Me')


class CustomerSignupForm(FlaskForm):
    """
    Form for customer registration.
    Custom validation checks that the email is not already registered to a customer.
    """
    name = StringField('Name', validators=[DataRequired(message="Name is required."), Length(max=100)])
    email = StringField('Email', validators=[DataRequired(message="Email is required."), Email(message="Invalid email address.")])
    password = PasswordField('Password', validators=[DataRequired(message="Password is required."), Length(min=6, message="Password must be at least 6 characters long.")])
    phone = StringField('Phone', validators=[Optional(), Length(max=20)])

    def validate_email(self, email):
        """
        Raises:
            ValidationError: If a customer with this email (case-insensitive) exists.
        """
        if Customer.query.filter_by(email=email.data.strip().lower()).first():
            raise ValidationError('Email already registered')


class BrandSignupForm(FlaskForm):
    brand_name = StringField('Brand Name', validators=[DataRequired(message="Brand name is required."), Length(min=2, max=50, message="Brand name must be between 2 and 50 characters.")])
    email = StringField('Email', validators=[DataRequired(message="Email is required."), Email(message="Invalid email address.")])
    password = PasswordField('Password', validators=[DataRequired(message="Password is required."), Length(min=6, message="Password must be at least 6 characters long.")])
    industry = StringField('Industry', validators=[DataRequired(message="Industry is required."), Length(max=100)])
    phone = StringField('Phone', validators=[DataRequired(message="Phone is required."), Length(max=20)])
    website = StringField('Website', validators=[Optional(), Length(max=255)])
    total_audience = IntegerField('Total Audience', validators=[Optional(), NumberRange(min=0, message="Total audience cannot be negative.")])

    def validate_email(self, email):
        # Brand and influencer emails share one namespace.
        if _email_taken_by_brand_or_influencer(email.data):
            raise ValidationError('Email already exists')


class InfluencerSignupForm(FlaskForm):
    full_name = StringField('Full Name', validators=[DataRequired(message="Full name is required."), Length(min=2, max=50, message="Full name must be between 2 and 50 characters.")])
    email = StringField('Email', validators=[DataRequired(message="Email is required."), Email(message="Invalid email address.")])
    password = PasswordField('Password', validators=[DataRequired(message="Password is required."), Length(min=6, message="Password must be at least 6 characters long.")])
    platform = StringField('Platform', validators=[DataRequired(message="Please select a valid social media platform")])
    social_handle = StringField('Social Handle', validators=[DataRequired(message="Social handle is required."), Length(max=100)])
    audience = IntegerField('Audience', validators=[InputRequired(message="Audience size is required."), NumberRange(min=0, message="Audience size cannot be negative.")])
    niche = StringField('Niche', validators=[DataRequired(message="Niche is required."), Length(max=100)])
    phone = StringField('Phone', validators=[DataRequired(message="Phone is required."), Length(max=20)])

    def validate_email(self, email):
        if _email_taken_by_brand_or_influencer(email.data):
            raise ValidationError('Email already exists')


class AdminLoginForm(FlaskForm):
    username = StringField('Username', validators=[DataRequired(message="Username is required.")])
    password = PasswordField('Password', validators=[DataRequired(message="Password is required.")])


class AdminPasswordResetForm(FlaskForm):
    """Password change for the logged-in admin. The current password is checked by the service."""
    current_password = PasswordField('Current Password', validators=[DataRequired(message="Current password is required.")])
    new_password = PasswordField('New Password', validators=[DataRequired(message="New password is required."), Length(min=8, message="New password must be at least 8 characters long.")])
    confirm_password = PasswordField('Confirm Password', validators=[DataRequired(message="Please confirm your new password."), EqualTo('new_password', message="Passwords do not match")])

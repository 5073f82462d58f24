import ROOT


class Plot:
    @staticmethod
    def apply_global_style() -> None:
        """Process-wide decoration settings shared by all data/MC figures."""
        ROOT.gStyle.SetErrorX(0.)
        ROOT.gStyle.SetHistMinimumZero(True)
        ROOT.gStyle.SetOptStat(0)
        ROOT.gStyle.SetStripDecimals(False)
        ROOT.TGaxis.SetMaxDigits(3)

        ROOT.gStyle.SetTitleFont(42)
        ROOT.gStyle.SetTitleFontSize(0.04)
        ROOT.gStyle.SetTitleFont(42, "XYZ")
        ROOT.gStyle.SetTitleXOffset(0.9)
        ROOT.gStyle.SetTitleYOffset(1.0)
        ROOT.gStyle.SetTitleSize(0.045, "XYZ")
        ROOT.gStyle.SetLabelFont(42, "XYZ")
        ROOT.gStyle.SetLabelOffset(0.007, "XYZ")
        ROOT.gStyle.SetLabelSize(0.04, "XYZ")
        ROOT.gStyle.SetNdivisions(508, "XYZ")

    @staticmethod
    def CMSmark(additional_text: str = "",
                x: float = 0.16,
                y: float = 0.91,
                text_size: float = 0.04) -> ROOT.TLatex:
        """
        Draw the CMS label with optional extra text (e.g. "Preliminary").

        Args:
            additional_text: Text set in italics after the CMS mark
            x, y: Position in NDC of the current pad
            text_size: Text size

        Returns:
            ROOT.TLatex: The drawn label (keep a reference to it)
        """
        label = f"#scale[1.2]{{#font[62]{{CMS}}}} #font[52]{{{additional_text}}}"

        latex_cms = ROOT.TLatex(x, y, label)
        latex_cms.SetNDC()
        latex_cms.SetTextFont(42)
        latex_cms.SetTextSize(text_size)
        latex_cms.SetTextAlign(11)  # Left bottom align
        latex_cms.Draw()

        return latex_cms

    @staticmethod
    def energy_mark(text: str,
                    x: float = 0.85,
                    y: float = 0.91,
                    text_size: float = 0.04) -> ROOT.TLatex:
        """Draw a right-aligned luminosity/energy label."""
        latex_energy = ROOT.TLatex(x, y, text)
        latex_energy.SetNDC()
        latex_energy.SetTextFont(42)
        latex_energy.SetTextSize(text_size)
        latex_energy.SetTextAlign(31)  # Right bottom align
        latex_energy.Draw()

        return latex_energy
